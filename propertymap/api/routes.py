# propertymap/api/routes.py
from pathlib import Path
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from typing import List
from .. import schemas
from ..capture import CaptureState, CaptureWorkflow
from ..errors import ConfigurationError, GeocodingError, InvalidTransition, PersistenceError
from ..geocoding import get_api_key
from ..listing import ListingWorkflow
from ..mapping import MapController
from ..services import SqlPropertyStore
from ..sessions import ScreenSessions
from ..utils import logger

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

router = APIRouter()


def get_store(request: Request) -> SqlPropertyStore:
    return request.app.state.store


def get_geocoder(request: Request):
    geocoder = request.app.state.geocoder
    if geocoder is None:
        raise HTTPException(status_code=503, detail="Google Maps API key is required")
    return geocoder


def get_sessions(request: Request) -> ScreenSessions:
    return request.app.state.capture_sessions


def get_listing_sessions(request: Request) -> ScreenSessions:
    return request.app.state.listing_sessions


def _api_key():
    try:
        return get_api_key(), None
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e.message)
        return None, e.message


@router.get("/health")
def health():
    return {"status": "ok"}

# --- screens ---

@router.get("/", response_class=HTMLResponse)
def capture_page(request: Request):
    api_key, config_error = _api_key()
    return templates.TemplateResponse(
        request, "capture.html", {"api_key": api_key, "error": config_error}
    )


@router.get("/show", response_class=HTMLResponse)
def listing_page(
    request: Request,
    q: str = "",
    store: SqlPropertyStore = Depends(get_store),
    sessions: ScreenSessions = Depends(get_listing_sessions),
):
    api_key, config_error = _api_key()
    view = None
    if config_error is None:
        sid, workflow = sessions.open()
        workflow.load(store)
        workflow.map_available(MapController(width=1024, height=768))
        workflow.filter(q)
        view = dict(workflow.view(), session_id=sid)
        if view["error"]:
            # the page renders as a blocking error and never talks back
            sessions.close(sid)
    return templates.TemplateResponse(
        request, "show.html", {"api_key": api_key, "error": config_error or (view or {}).get("error"), "view": view}
    )

# --- records ---

@router.get("/api/properties", response_model=List[schemas.PropertyOut])
def list_properties(store: SqlPropertyStore = Depends(get_store)):
    try:
        return store.list_records()
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=e.message)


@router.post("/api/properties", status_code=201)
def create_property(payload: schemas.PropertyCreate, store: SqlPropertyStore = Depends(get_store)):
    if not store.create_record(payload):
        raise HTTPException(status_code=500, detail="Failed to save property")
    return {"status": "created"}


# --- geocoding ---

@router.get("/api/geocode/reverse", response_model=schemas.ReverseGeocodeResult)
def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    geocoder=Depends(get_geocoder),
):
    try:
        result = geocoder.reverse_geocode(lat, lng)
    except GeocodingError as e:
        raise HTTPException(status_code=502, detail=e.message)
    if result is None:
        raise HTTPException(status_code=404, detail="No results found")
    return result


@router.get("/api/geocode/forward", response_model=schemas.Coordinates)
def forward_geocode(address: str = Query(..., min_length=1), geocoder=Depends(get_geocoder)):
    try:
        result = geocoder.forward_geocode(address)
    except GeocodingError as e:
        raise HTTPException(status_code=502, detail=e.message)
    if result is None:
        raise HTTPException(status_code=404, detail="Could not find the specified address.")
    return result

# --- listing screen ---

def _listing(sid: str, sessions: ScreenSessions) -> ListingWorkflow:
    workflow = sessions.get(sid)
    if workflow is None:
        raise HTTPException(status_code=404, detail="Listing session not found")
    return workflow


@router.get("/api/listing/{sid}")
def listing_view(sid: str, q: str = "", sessions: ScreenSessions = Depends(get_listing_sessions)):
    workflow = _listing(sid, sessions)
    workflow.filter(q)
    return workflow.view()


@router.post("/api/listing/{sid}/hover")
def listing_hover(sid: str, target: schemas.HoverTarget, sessions: ScreenSessions = Depends(get_listing_sessions)):
    workflow = _listing(sid, sessions)
    if not workflow.hover_enter(target.id, target.x, target.y):
        raise HTTPException(status_code=404, detail="Property not shown on the map")
    return workflow.view()


@router.delete("/api/listing/{sid}/hover")
def listing_unhover(sid: str, sessions: ScreenSessions = Depends(get_listing_sessions)):
    workflow = _listing(sid, sessions)
    workflow.hover_leave()
    return workflow.view()


@router.post("/api/listing/{sid}/focus")
def listing_focus(sid: str, target: schemas.FocusTarget, sessions: ScreenSessions = Depends(get_listing_sessions)):
    workflow = _listing(sid, sessions)
    if not workflow.focus(target.id):
        raise HTTPException(status_code=404, detail="Property not shown on the map")
    return workflow.view()


@router.post("/api/listing/{sid}/viewport")
def listing_viewport(sid: str, viewport: schemas.Viewport, sessions: ScreenSessions = Depends(get_listing_sessions)):
    workflow = _listing(sid, sessions)
    workflow.viewport_changed(viewport.lat, viewport.lng, viewport.zoom, viewport.width, viewport.height)
    return workflow.view()


@router.delete("/api/listing/{sid}")
def close_listing(sid: str, sessions: ScreenSessions = Depends(get_listing_sessions)):
    if not sessions.close(sid):
        raise HTTPException(status_code=404, detail="Listing session not found")
    return {"status": "closed"}

# --- capture screen ---

def _workflow(sid: str, sessions: ScreenSessions) -> CaptureWorkflow:
    workflow = sessions.get(sid)
    if workflow is None:
        raise HTTPException(status_code=404, detail="Capture session not found")
    return workflow


def _handle(workflow: CaptureWorkflow, event, *args):
    try:
        event(*args)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=e.to_dict())
    return workflow.snapshot()


@router.post("/api/capture", status_code=201)
def open_capture(request: Request, sessions: ScreenSessions = Depends(get_sessions)):
    get_geocoder(request)
    sid, workflow = sessions.open()
    return dict(workflow.snapshot(), session_id=sid)


@router.get("/api/capture/{sid}")
def capture_state(sid: str, sessions: ScreenSessions = Depends(get_sessions)):
    return _workflow(sid, sessions).snapshot()


@router.delete("/api/capture/{sid}")
def close_capture(sid: str, sessions: ScreenSessions = Depends(get_sessions)):
    if not sessions.close(sid):
        raise HTTPException(status_code=404, detail="Capture session not found")
    return {"status": "closed"}


@router.post("/api/capture/{sid}/ready")
def capture_map_ready(sid: str, sessions: ScreenSessions = Depends(get_sessions)):
    workflow = _workflow(sid, sessions)
    return _handle(workflow, workflow.map_ready)


@router.post("/api/capture/{sid}/map-error")
def capture_map_error(sid: str, sessions: ScreenSessions = Depends(get_sessions)):
    workflow = _workflow(sid, sessions)
    return _handle(workflow, workflow.map_failed)


@router.post("/api/capture/{sid}/point")
def capture_point(sid: str, point: schemas.Coordinates, sessions: ScreenSessions = Depends(get_sessions)):
    workflow = _workflow(sid, sessions)
    return _handle(workflow, workflow.select_point, point.lat, point.lng)


@router.post("/api/capture/{sid}/address")
def capture_address(sid: str, query: schemas.AddressQuery, sessions: ScreenSessions = Depends(get_sessions)):
    workflow = _workflow(sid, sessions)
    return _handle(workflow, workflow.update_from_address, query)


@router.post("/api/capture/{sid}/geolocation")
def capture_begin_geolocation(sid: str, sessions: ScreenSessions = Depends(get_sessions)):
    workflow = _workflow(sid, sessions)
    try:
        token = workflow.begin_geolocation()
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=e.to_dict())
    return dict(workflow.snapshot(), token=token)


@router.post("/api/capture/{sid}/geolocation/{token}/complete")
def capture_complete_geolocation(
    sid: str, token: int, point: schemas.Coordinates, sessions: ScreenSessions = Depends(get_sessions)
):
    workflow = _workflow(sid, sessions)
    return _handle(workflow, workflow.complete_geolocation, token, point.lat, point.lng)


@router.post("/api/capture/{sid}/geolocation/{token}/fail")
def capture_fail_geolocation(
    sid: str, token: int, failure: schemas.GeolocationFailure, sessions: ScreenSessions = Depends(get_sessions)
):
    workflow = _workflow(sid, sessions)
    return _handle(workflow, workflow.fail_geolocation, token, failure.reason)


@router.post("/api/capture/{sid}/submit")
def capture_submit(sid: str, form: schemas.PropertyForm, sessions: ScreenSessions = Depends(get_sessions)):
    workflow = _workflow(sid, sessions)
    snapshot = _handle(workflow, workflow.submit, form)
    if workflow.state is CaptureState.submitted:
        sessions.close(sid)
        snapshot["redirect"] = "/show"
    return snapshot


@router.post("/api/capture/{sid}/dismiss")
def capture_dismiss(sid: str, sessions: ScreenSessions = Depends(get_sessions)):
    workflow = _workflow(sid, sessions)
    return _handle(workflow, workflow.dismiss_error)


@router.get("/api/capture/{sid}/coordinates")
def capture_coordinates(sid: str, sessions: ScreenSessions = Depends(get_sessions)):
    workflow = _workflow(sid, sessions)
    copied = []
    text = workflow.copy_coordinates(copied.append)
    if text is None:
        raise HTTPException(status_code=404, detail="No coordinates to copy")
    return {"text": text}
