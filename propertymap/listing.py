# propertymap/listing.py
"""Listing screen workflow: every saved property on a map plus a searchable list.

Markers always track the full renderable collection. The text filter only
narrows the sidebar (`visible`) and the "showing N of M" caption.
"""
import enum
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple
from . import schemas
from .errors import PersistenceError
from .mapping import MapController, Marker
from .utils import format_acres, format_price, format_text, logger

MAX_FIT_ZOOM = 15
FOCUS_ZOOM = 16
INITIAL_ZOOM = 10
POPUP_OFFSET = 10

LOAD_FAILED = "Failed to load properties data"
NO_COORDINATES = "No valid property coordinates found"
NO_MATCHES = "No properties match your search criteria"


class ListingState(str, enum.Enum):
    loading = "loading"
    ready = "ready"
    filtered = "filtered"
    error = "error"


class PropertyReader(Protocol):
    def list_records(self) -> List[schemas.PropertyOut]: ...


def renderable(records: Sequence[schemas.PropertyOut]) -> List[schemas.PropertyOut]:
    return [r for r in records if r.latitude is not None and r.longitude is not None]


def mean_center(records: Sequence[schemas.PropertyOut]) -> Optional[Tuple[float, float]]:
    """Arithmetic mean of the renderable records' coordinates."""
    points = renderable(records)
    if not points:
        return None
    lat = sum(r.latitude for r in points) / len(points)
    lng = sum(r.longitude for r in points) / len(points)
    return lat, lng


def normalize_query(query: Optional[str]) -> str:
    return (query or "").strip().lower()


def matches(record: schemas.PropertyOut, query: str) -> bool:
    if not query:
        return True
    haystacks = (record.city, record.broker, str(record.id))
    return any(h is not None and query in h.lower() for h in haystacks)


def filter_records(records: Sequence[schemas.PropertyOut], query: Optional[str]) -> List[schemas.PropertyOut]:
    q = normalize_query(query)
    return [r for r in records if matches(r, q)]


def property_card(record: schemas.PropertyOut) -> Dict[str, Any]:
    return {
        "id": record.id,
        "title": f"Property #{record.id}",
        "broker": format_text(record.broker),
        "price": format_price(record.price),
        "acres": format_acres(record.acres),
        "city": format_text(record.city),
        "renderable": record.is_renderable,
    }


class ListingWorkflow:
    def __init__(self):
        self.state = ListingState.loading
        self.records: List[schemas.PropertyOut] = []
        self.visible: List[schemas.PropertyOut] = []
        self.query = ""
        self.error: Optional[str] = None
        self.map: Optional[MapController] = None
        self.hovered: Optional[schemas.PropertyOut] = None
        self.popup_position: Optional[Tuple[float, float]] = None
        self._loaded = False
        self._load_requested = False
        self._map_initialized = False

    # -- loading -----------------------------------------------------------

    def load(self, reader: PropertyReader):
        if self._load_requested:
            return
        self._load_requested = True
        try:
            records = reader.list_records()
        except PersistenceError as e:
            logger.error("Error fetching properties: %s", e)
            self._fail(LOAD_FAILED)
            return
        self.records = list(records)
        self.visible = list(self.records)
        self._loaded = True
        self._maybe_initialize_map()

    def map_available(self, controller: MapController):
        if self.state is ListingState.error:
            return
        self.map = controller
        self._maybe_initialize_map()

    def map_failed(self, message: str = "Failed to load Google Maps. Please check your API key."):
        logger.error("Map failed to load: %s", message)
        self._fail(message)

    def _maybe_initialize_map(self):
        if self.state is ListingState.error or self._map_initialized:
            return
        if not self._loaded or self.map is None:
            return
        m = self.map
        if not self.records:
            # nothing saved yet: an empty map rather than an error
            m.clear_markers()
            self._map_initialized = True
            self.state = ListingState.ready
            return
        center = mean_center(self.records)
        if center is None:
            self._fail(NO_COORDINATES)
            return
        m.set_center(*center)
        m.set_zoom(INITIAL_ZOOM)
        m.clear_markers()
        points = []
        for r in renderable(self.records):
            m.add_marker(Marker(record_id=r.id, lat=r.latitude, lng=r.longitude, title=f"Property #{r.id}"))
            points.append((r.latitude, r.longitude))
        m.fit_bounds(points)
        # keep a lone or tightly packed cluster from zooming in too far
        m.clamp_zoom(MAX_FIT_ZOOM)
        self._map_initialized = True
        self.state = ListingState.filtered if normalize_query(self.query) else ListingState.ready

    def _fail(self, message: str):
        self.error = message
        self.state = ListingState.error

    # -- interaction ---------------------------------------------------------

    def filter(self, query: Optional[str]) -> List[schemas.PropertyOut]:
        self.query = query or ""
        self.visible = filter_records(self.records, self.query)
        if self.state in (ListingState.ready, ListingState.filtered):
            self.state = ListingState.filtered if normalize_query(self.query) else ListingState.ready
        return self.visible

    def _find(self, record_id: int) -> Optional[schemas.PropertyOut]:
        for r in self.records:
            if r.id == record_id:
                return r
        return None

    def hover_enter(self, record_id: int, x: Optional[float] = None, y: Optional[float] = None) -> bool:
        """Mark `record_id` as hovered and place its popup.

        `x`/`y` are the pointer's position inside the map viewport. Without a
        pointer (hovering the sidebar row) the popup sits on the record's
        marker, projected through the current viewport.
        """
        record = self._find(record_id)
        if record is None:
            return False
        if x is None or y is None:
            if not record.is_renderable or self.map is None:
                return False
            x, y = self.map.project(record.latitude, record.longitude)
        self.hovered = record
        self.popup_position = (x + POPUP_OFFSET, y + POPUP_OFFSET)
        return True

    def hover_leave(self):
        self.hovered = None
        self.popup_position = None

    def viewport_changed(self, lat: float, lng: float, zoom: int,
                         width: Optional[int] = None, height: Optional[int] = None):
        """Follow the widget after the operator pans or zooms."""
        if self.map is None:
            return
        self.map.set_center(lat, lng)
        self.map.set_zoom(zoom)
        if width and height:
            self.map.width, self.map.height = width, height

    def focus(self, record_id: int) -> bool:
        record = self._find(record_id)
        if record is None or not record.is_renderable or self.map is None:
            return False
        self.map.set_center(record.latitude, record.longitude)
        self.map.set_zoom(FOCUS_ZOOM)
        return True

    def teardown(self):
        if self.map is not None:
            self.map.teardown()
            self.map = None
        self.hover_leave()

    close = teardown

    # -- presentation ----------------------------------------------------------

    @property
    def caption(self) -> Optional[str]:
        shown, total = len(self.visible), len(self.records)
        if shown == 0:
            return NO_MATCHES
        if shown < total:
            return f"Showing {shown} of {total} properties"
        return None

    def view(self) -> Dict[str, Any]:
        hovered = None
        if self.hovered is not None:
            x, y = self.popup_position
            hovered = dict(property_card(self.hovered), x=x, y=y)
        return {
            "state": self.state.value,
            "error": self.error,
            "query": self.query,
            "total": len(self.records),
            "renderable": len(renderable(self.records)),
            "showing": len(self.visible),
            "caption": self.caption,
            "properties": [property_card(r) for r in self.visible],
            "map": self.map.to_dict() if self.map is not None and self._map_initialized else None,
            "hovered": hovered,
        }
