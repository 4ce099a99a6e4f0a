"""
geojson_getter.py - Fetch the wall and POI feature collections
================================================================

Locators starting with http:// or https:// are downloaded with requests,
anything else is read as a local GeoJSON file. Every failure is reported as
a LoadError carrying the locator and, when known, an HTTP-like status.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class LoadError(Exception):
    """A feature collection could not be loaded."""

    def __init__(self, locator: str, status: Optional[int] = None, reason: Optional[str] = None):
        self.locator = locator
        self.status = status
        self.reason = reason
        parts = [str(part) for part in (status, reason) if part is not None]
        detail = " - ".join(parts) or "errore sconosciuto"
        super().__init__(f"Errore caricamento {locator}: {detail}")


def _is_remote(locator: str) -> bool:
    return locator.lower().startswith(("http://", "https://"))


def _validate_collection(locator: str, data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict) or data.get("type") != "FeatureCollection":
        raise LoadError(locator, reason="not a GeoJSON FeatureCollection")
    if not isinstance(data.get("features"), list):
        raise LoadError(locator, reason="missing 'features' array")
    return data


def fetch_remote(url: str, timeout: float = DEFAULT_TIMEOUT) -> Any:
    """GET a JSON document, raising LoadError on any non-success outcome."""
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise LoadError(url, reason=str(e)) from e

    if resp.status_code != 200:
        raise LoadError(url, status=resp.status_code)

    try:
        return resp.json()
    except ValueError as e:
        raise LoadError(url, status=resp.status_code, reason=f"invalid JSON: {e}") from e


def read_local(path: Union[str, Path]) -> Any:
    """Read a JSON document from disk, raising LoadError if it is missing or broken."""
    path = Path(path)
    if not path.exists():
        raise LoadError(str(path), status=404)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise LoadError(str(path), reason=f"invalid JSON: {e}") from e
    except OSError as e:
        raise LoadError(str(path), reason=str(e)) from e


def load(locator: Union[str, Path], timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    """Load a GeoJSON FeatureCollection from a URL or a file path.

    Args:
        locator: URL or local path of the collection
        timeout: HTTP timeout in seconds

    Returns:
        The parsed FeatureCollection dict

    Raises:
        LoadError: if the fetch fails or the document is not a FeatureCollection
    """
    locator = str(locator)
    data = fetch_remote(locator, timeout) if _is_remote(locator) else read_local(locator)
    collection = _validate_collection(locator, data)
    logger.info(f"✅ Loaded {len(collection['features'])} features from {locator}")
    return collection


class GeoJsonLoader:
    """Loads feature collections, caching them per locator."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout
        self._cache: Dict[str, Dict[str, Any]] = {}

    def load(self, locator: Union[str, Path]) -> Dict[str, Any]:
        key = str(locator)
        if key in self._cache:
            logger.debug(f"Loading from cache: {key}")
            return self._cache[key]
        collection = load(key, timeout=self.timeout)
        self._cache[key] = collection
        return collection
