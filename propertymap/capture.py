# propertymap/capture.py
"""Capture screen workflow.

The operator picks a point (map click, marker drag, device geolocation or a
typed address), the point is reverse-geocoded into a `LocationSelection`,
and the descriptive fields are submitted as a new property record.
"""
import enum
import itertools
import threading
from typing import Any, Callable, Dict, Optional, Protocol, Tuple
from pydantic import ValidationError
from . import schemas
from .errors import (
    CollaboratorLoadError,
    GeocodingError,
    GeolocationError,
    InputError,
    InvalidTransition,
    NoResultsError,
    RecoverableError,
)
from .mapping import MapController, Marker
from .utils import format_coordinates, logger

DEFAULT_LOCATION = (28.6139, 77.2090)
DEFAULT_ZOOM = 15

GEOLOCATION_DENIED = "Could not access your location. Please check browser permissions."
GEOLOCATION_UNSUPPORTED = "Geolocation is not supported by this browser."
ADDRESS_NOT_FOUND = "Could not find the specified address."
NO_ADDRESS_FOR_POINT = "No address found for the selected point."
SELECTION_REQUIRED = "Please select a location"
SAVE_FAILED = "Failed to save location data. Please try again."


class CaptureState(str, enum.Enum):
    awaiting_map_ready = "awaiting-map-ready"
    idle = "idle-no-selection"
    pending_geocode = "selection-pending-geocode"
    resolved = "selection-resolved"
    submitting = "submitting"
    submitted = "submitted"
    error = "error"
    failed = "failed"


class Geocoder(Protocol):
    def reverse_geocode(self, lat: float, lng: float) -> Optional[schemas.ReverseGeocodeResult]: ...
    def forward_geocode(self, address: str) -> Optional[schemas.Coordinates]: ...


class PropertyStore(Protocol):
    def create_record(self, fields: schemas.PropertyCreate) -> bool: ...


class RequestSlot:
    """One in-flight request of a kind; a new request supersedes the pending one."""

    def __init__(self):
        self._tokens = itertools.count(1)
        self.pending: Optional[int] = None

    def begin(self) -> int:
        if self.pending is not None:
            logger.debug("Superseding pending request %s", self.pending)
        self.pending = next(self._tokens)
        return self.pending

    def finish(self, token: int) -> bool:
        """Close the slot for `token`; False when the token was superseded."""
        if token != self.pending:
            return False
        self.pending = None
        return True


class CaptureWorkflow:
    def __init__(self, geocoder: Geocoder, store: PropertyStore, map_controller: Optional[MapController] = None):
        self.geocoder = geocoder
        self.store = store
        self.map = map_controller or MapController(center=DEFAULT_LOCATION, zoom=DEFAULT_ZOOM)
        self.state = CaptureState.awaiting_map_ready
        self.selection: Optional[schemas.LocationSelection] = None
        self.display_coordinates: Optional[Tuple[float, float]] = None
        self.address = schemas.AddressQuery()
        self.error: Optional[str] = None
        self.geolocation = RequestSlot()
        self._resume_state: Optional[CaptureState] = None
        self._lock = threading.RLock()

    # -- lifecycle ---------------------------------------------------------

    def map_ready(self):
        with self._lock:
            self._require(CaptureState.awaiting_map_ready)
            lat, lng = self.map.center
            self.map.clear_markers()
            self.map.add_marker(Marker(record_id=0, lat=lat, lng=lng, title="Selected location", draggable=True))
            self.display_coordinates = (lat, lng)
            self.state = CaptureState.idle

    def map_failed(self, message: str = "Failed to load Google Maps. Please check your API key."):
        with self._lock:
            logger.error("Map failed to load: %s", message)
            self.error = CollaboratorLoadError(message).message
            self.state = CaptureState.failed

    def close(self):
        """Discard transient state when the operator navigates away."""
        with self._lock:
            self.selection = None
            self.geolocation.pending = None
            self.map.teardown()

    # -- point selection ---------------------------------------------------

    def select_point(self, lat: float, lng: float):
        with self._lock:
            self._require_interactive()
            try:
                point = schemas.Coordinates(lat=lat, lng=lng)
            except ValidationError:
                return self._recoverable(InputError("Coordinates out of range"))
            self._resolve_point(point.lat, point.lng)

    def _resolve_point(self, lat: float, lng: float, recenter: bool = False):
        prior_state, prior_display = self.state, self.display_coordinates
        self.state = CaptureState.pending_geocode
        self.display_coordinates = (lat, lng)
        try:
            result = self.geocoder.reverse_geocode(lat, lng)
            if result is None:
                raise NoResultsError(NO_ADDRESS_FOR_POINT)
        except RecoverableError as e:
            self.state, self.display_coordinates = prior_state, prior_display
            return self._recoverable(e)

        self.selection = schemas.LocationSelection(
            address=result.formatted_address,
            place_id=result.place_id,
            lat=lat,
            lng=lng,
            state=result.state,
            city=result.city,
            street=result.street,
        )
        self.address = schemas.AddressQuery(street=result.street or "", city=result.city or "", state=result.state or "")
        self._move_marker(lat, lng)
        if recenter:
            self.map.set_center(lat, lng)
        self.state = CaptureState.resolved

    def _move_marker(self, lat: float, lng: float):
        for marker in self.map.markers:
            marker.lat, marker.lng = lat, lng

    def update_from_address(self, query: schemas.AddressQuery):
        with self._lock:
            self._require_interactive()
            text = query.as_text()
            if not text:
                return self._recoverable(InputError("Enter a street, city or state"))
            self.address = query
            try:
                location = self.geocoder.forward_geocode(text)
            except GeocodingError as e:
                return self._recoverable(e)
            if location is None:
                return self._recoverable(NoResultsError(ADDRESS_NOT_FOUND))
            self._resolve_point(location.lat, location.lng, recenter=True)

    # -- device geolocation --------------------------------------------------

    @property
    def locating(self) -> bool:
        return self.geolocation.pending is not None

    def begin_geolocation(self) -> int:
        with self._lock:
            self._require_interactive()
            return self.geolocation.begin()

    def complete_geolocation(self, token: int, lat: float, lng: float) -> bool:
        with self._lock:
            if not self.geolocation.finish(token):
                logger.info("Ignoring superseded geolocation result %s", token)
                return False
            self._require_interactive()
            try:
                point = schemas.Coordinates(lat=lat, lng=lng)
            except ValidationError:
                self._recoverable(GeolocationError(GEOLOCATION_DENIED))
                return True
            self._resolve_point(point.lat, point.lng, recenter=True)
            return True

    def fail_geolocation(self, token: int, reason: Optional[str] = None) -> bool:
        with self._lock:
            if not self.geolocation.finish(token):
                return False
            logger.warning("Error getting location: %s", reason)
            message = GEOLOCATION_UNSUPPORTED if reason == "unsupported" else GEOLOCATION_DENIED
            self._recoverable(GeolocationError(message, details={"reason": reason}))
            return True

    # -- submit ----------------------------------------------------------------

    def submit(self, form: schemas.PropertyForm) -> bool:
        with self._lock:
            self._require_interactive()
            if self.selection is None or self.display_coordinates is None:
                self._recoverable(InputError(SELECTION_REQUIRED))
                return False
            lat, lng = self.display_coordinates
            try:
                fields = schemas.PropertyCreate(
                    broker=form.broker,
                    price=form.price,
                    acres=form.acres,
                    latitude=lat,
                    longitude=lng,
                    city=form.city,
                )
            except ValidationError as e:
                bad = ", ".join(str(err["loc"][0]) for err in e.errors())
                self._recoverable(InputError(f"Invalid value for {bad}", details={"fields": bad}))
                return False

            self.state = CaptureState.submitting
            created = self.store.create_record(fields)
            if not created:
                self.state = CaptureState.resolved
                self._recoverable(RecoverableError(SAVE_FAILED))
                return False
            self.selection = None
            self.state = CaptureState.submitted
            return True

    # -- misc ------------------------------------------------------------------

    def copy_coordinates(self, sink: Callable[[str], Any]) -> Optional[str]:
        """Write the displayed coordinates to a clipboard-like sink."""
        if self.display_coordinates is None:
            return None
        text = format_coordinates(*self.display_coordinates)
        try:
            sink(text)
        except Exception as e:
            logger.warning("Failed to copy coordinates: %s", e)
        return text

    def dismiss_error(self):
        with self._lock:
            if self.state is not CaptureState.error:
                return
            self.error = None
            self.state = self._resume_state or CaptureState.idle
            self._resume_state = None

    def snapshot(self) -> Dict[str, Any]:
        lat_lng = None
        if self.display_coordinates is not None:
            lat_lng = {"lat": self.display_coordinates[0], "lng": self.display_coordinates[1]}
        return {
            "state": self.state.value,
            "selection": self.selection.model_dump() if self.selection else None,
            "coordinates": lat_lng,
            "address": self.address.model_dump(),
            "locating": self.locating,
            "error": self.error,
            "map": self.map.to_dict(),
        }

    # -- internals -------------------------------------------------------------

    def _recoverable(self, err: RecoverableError):
        logger.info("Recoverable capture error: %s", err.message)
        if self.state is not CaptureState.error:
            self._resume_state = self.state
        self.error = err.message
        self.state = CaptureState.error

    def _require(self, *states: CaptureState):
        if self.state not in states:
            raise InvalidTransition(
                f"Cannot handle event in state {self.state.value}",
                details={"state": self.state.value},
            )

    def _require_interactive(self):
        self._require(CaptureState.idle, CaptureState.resolved, CaptureState.error)
        if self.state is CaptureState.error:
            # a new interaction implicitly dismisses the previous message
            self.dismiss_error()

