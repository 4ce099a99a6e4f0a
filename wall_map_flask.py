import logging
import os

from flask import Flask, render_template_string

from wall_map import MapBuilder, MapConfig, setup_logging

logger = logging.getLogger(__name__)

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_FOLDER = os.path.join(BASE_DIR, "data")

app.config["WALL_MAP_CONFIG"] = MapConfig(
    lines_source=os.path.join(DATA_FOLDER, "muretti.geojson"),
    points_source=os.path.join(DATA_FOLDER, "poi.geojson"),
)

# Page with an iframe displaying the Folium map
TEMPLATE = """
<!DOCTYPE html>
<html lang="it">
<head>
    <meta charset="UTF-8">
    <title>Muretti a secco</title>
    <style>
        body, html { margin: 0; padding: 0; height: 100%; font-family: sans-serif; }
        iframe { width: 100%; height: 100%; border: none; }
    </style>
</head>
<body>
    <iframe src="{{ url_for('map_embed') }}" title="Mappa muretti a secco"></iframe>
</body>
</html>
"""

# Shown instead of the map when initialization fails: nothing partial is rendered
ERROR_TEMPLATE = """
<!DOCTYPE html>
<html lang="it">
<head>
    <meta charset="UTF-8">
    <title>Errore</title>
</head>
<body>
    <p style="font-family: sans-serif; color: #c0392b;">{{ message }}</p>
    <script>alert({{ message|tojson }});</script>
</body>
</html>
"""


def render_error_page(message: str):
    return render_template_string(ERROR_TEMPLATE, message=message), 502


@app.route("/")
def index():
    """Main page."""
    return render_template_string(TEMPLATE)


@app.route("/map_embed")
def map_embed():
    """Generate and serve the Folium map dynamically."""
    logger.info("🛠 Generating Folium map...")
    try:
        folium_map = MapBuilder(app.config["WALL_MAP_CONFIG"]).build()
    except Exception as e:
        logger.error(f"❌ Map initialization failed: {e}", exc_info=True)
        return render_error_page(str(e))
    return folium_map.get_root().render()


if __name__ == "__main__":
    setup_logging()
    app.run(debug=True)
