"""
kml_locations.py
================
Reads a KML (or plain XML) placemark file and returns a mapping of
article title -> Location.

Each <Placemark> must carry a <name> (the article title) and a
<Point><coordinates> whose text is "lon,lat[,alt]". KML stores longitude
first, so the fields are swapped when building a Location.

Works with namespaced KML (http://www.opengis.net/kml/2.2) and with bare
<Placemark> documents.
"""

import math
import xml.etree.ElementTree as ET
from typing import Dict, NamedTuple


class ParseError(ValueError):
    """The placemark file is malformed or a placemark is incomplete."""


class Location(NamedTuple):
    latitude: float
    longitude: float


def _namespace(root):
    """Return {'kml': uri} for a namespaced root tag, else an empty dict."""
    if root.tag.startswith("{"):
        return {"kml": root.tag[1:].split("}", 1)[0]}
    return {}


def _path(path, ns):
    if not ns:
        return path
    return "/".join(
        part if part in (".", "") else f"kml:{part}"
        for part in path.split("/")
    )


def parse_coordinates(coord_text):
    """Parse a "lon,lat[,alt]" string into a Location."""
    fields = [f.strip() for f in (coord_text or "").strip().split(",")]
    if len(fields) < 2 or not fields[0] or not fields[1]:
        raise ParseError(f"expected 'lon,lat[,alt]', got {coord_text!r}")
    try:
        longitude = float(fields[0])
        latitude = float(fields[1])
    except ValueError:
        raise ParseError(f"non-numeric coordinates: {coord_text!r}") from None
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise ParseError(f"non-finite coordinates: {coord_text!r}")
    if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        raise ParseError(f"coordinates out of range: {coord_text!r}")
    return Location(latitude, longitude)


def parse_placemarks(root) -> Dict[str, Location]:
    ns = _namespace(root)
    locations: Dict[str, Location] = {}

    for i, placemark in enumerate(root.iterfind(_path(".//Placemark", ns), ns), 1):
        name_elem = placemark.find(_path("name", ns), ns)
        coord_elem = placemark.find(_path(".//Point/coordinates", ns), ns)

        title = (name_elem.text or "").strip() if name_elem is not None else ""
        if not title:
            raise ParseError(f"placemark #{i} has no name")
        if coord_elem is None or not (coord_elem.text or "").strip():
            raise ParseError(f"placemark {title!r} has no point coordinates")
        if title in locations:
            raise ParseError(f"duplicate placemark {title!r}")

        try:
            locations[title] = parse_coordinates(coord_elem.text)
        except ParseError as e:
            raise ParseError(f"placemark {title!r}: {e}") from None

    return locations


def read_locations(path) -> Dict[str, Location]:
    """Parse the placemark file at *path*.

    Raises ParseError for malformed XML or any incomplete placemark; no
    partial mapping is ever returned.
    """
    try:
        tree = ET.parse(path)
    except ET.ParseError as e:
        raise ParseError(f"{path}: {e}") from e
    return parse_placemarks(tree.getroot())
