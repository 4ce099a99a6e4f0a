#!/usr/bin/env python3
"""Simple CLI to generate the dry-stone wall folium map with the bundled data."""
import os

from wall_map import build_wall_map, setup_logging


def main():
    base = os.path.dirname(__file__)
    lines = os.path.join(base, 'data', 'muretti.geojson')
    points = os.path.join(base, 'data', 'poi.geojson')
    out = os.path.join(base, 'muretti_map.html')
    setup_logging()
    print('Generating map...')
    build_wall_map(lines, points, out)
    print('Map written to', out)


if __name__ == '__main__':
    main()
