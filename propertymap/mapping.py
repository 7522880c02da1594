# propertymap/mapping.py
"""Server-side model of the map widget.

`MapController` owns the viewport and the marker set for one screen. The
browser widget only draws what the controller decides, so bounds fitting,
zoom clamping and overlay positioning follow the Web-Mercator tile math
the widget itself uses (256px tiles at zoom 0).
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

TILE_SIZE = 256
MAX_ZOOM = 21

MARKER_ICON = {
    "path": "CIRCLE",
    "fillColor": "#6366F1",
    "fillOpacity": 0.9,
    "strokeColor": "#4338CA",
    "strokeWeight": 1.5,
    "scale": 10,
}


@dataclass
class Marker:
    record_id: int
    lat: float
    lng: float
    title: str
    icon: Dict[str, Any] = field(default_factory=lambda: dict(MARKER_ICON))
    draggable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.record_id,
            "position": {"lat": self.lat, "lng": self.lng},
            "title": self.title,
            "icon": self.icon,
            "draggable": self.draggable,
        }


@dataclass
class Bounds:
    south: float
    west: float
    north: float
    east: float

    @classmethod
    def around(cls, points) -> "Bounds":
        lats = [p[0] for p in points]
        lngs = [p[1] for p in points]
        return cls(min(lats), min(lngs), max(lats), max(lngs))

    @property
    def center(self) -> Tuple[float, float]:
        return (self.south + self.north) / 2, (self.west + self.east) / 2

    def contains(self, lat: float, lng: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lng <= self.east


def world_point(lat: float, lng: float) -> Tuple[float, float]:
    """Mercator projection of a coordinate onto the zoom-0 world tile."""
    siny = math.sin(math.radians(lat))
    siny = min(max(siny, -0.9999), 0.9999)
    x = TILE_SIZE * (0.5 + lng / 360)
    y = TILE_SIZE * (0.5 - math.log((1 + siny) / (1 - siny)) / (4 * math.pi))
    return x, y


def _lat_rad(lat: float) -> float:
    siny = math.sin(math.radians(lat))
    # sin(±90°) is exactly ±1 and would divide by zero below
    siny = min(max(siny, -0.9999), 0.9999)
    rad_x2 = math.log((1 + siny) / (1 - siny)) / 2
    return max(min(rad_x2, math.pi), -math.pi) / 2


def zoom_for_bounds(bounds: Bounds, width: int, height: int, max_zoom: int = MAX_ZOOM) -> int:
    """Largest integer zoom at which `bounds` fits a width x height viewport."""
    lat_fraction = (_lat_rad(bounds.north) - _lat_rad(bounds.south)) / math.pi
    lng_span = bounds.east - bounds.west
    lng_fraction = (lng_span + 360 if lng_span < 0 else lng_span) / 360

    def _zoom(pixels, fraction):
        if fraction <= 0:
            return max_zoom
        return math.floor(math.log2(pixels / TILE_SIZE / fraction))

    return max(0, min(_zoom(height, lat_fraction), _zoom(width, lng_fraction), max_zoom))


class MapController:
    def __init__(self, width: int = 1024, height: int = 768,
                 center: Tuple[float, float] = (0.0, 0.0), zoom: int = 10):
        self.width = width
        self.height = height
        self.center = center
        self.zoom = zoom
        self.markers: List[Marker] = []
        self.bounds: Optional[Bounds] = None
        self.active = True

    def set_center(self, lat: float, lng: float):
        self.center = (lat, lng)

    def set_zoom(self, zoom: int):
        self.zoom = max(0, min(int(zoom), MAX_ZOOM))

    def add_marker(self, marker: Marker) -> Marker:
        self.markers.append(marker)
        return marker

    def clear_markers(self):
        self.markers = []

    def fit_bounds(self, points: List[Tuple[float, float]]):
        if not points:
            return
        self.bounds = Bounds.around(points)
        self.center = self.bounds.center
        self.zoom = zoom_for_bounds(self.bounds, self.width, self.height)

    def clamp_zoom(self, max_zoom: int):
        if self.zoom > max_zoom:
            self.zoom = max_zoom

    def project(self, lat: float, lng: float) -> Tuple[float, float]:
        """Viewport pixel position of a coordinate, origin at the top-left."""
        scale = 2 ** self.zoom
        px, py = world_point(lat, lng)
        cx, cy = world_point(*self.center)
        return (px - cx) * scale + self.width / 2, (py - cy) * scale + self.height / 2

    def to_dict(self) -> Dict[str, Any]:
        lat, lng = self.center
        return {
            "center": {"lat": lat, "lng": lng},
            "zoom": self.zoom,
            "markers": [m.to_dict() for m in self.markers],
        }

    def teardown(self):
        self.clear_markers()
        self.bounds = None
        self.active = False
