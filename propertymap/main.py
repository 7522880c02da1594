# propertymap/main.py
import os
from fastapi import FastAPI
from .db import Base, SessionLocal, engine
from . import models  # noqa: F401 ensure models are imported so tables are known
from .api.routes import router as api_router
from .capture import CaptureWorkflow
from .errors import ConfigurationError
from .geocoding import GoogleGeocoder, get_api_key
from .listing import ListingWorkflow
from .services import SqlPropertyStore
from .sessions import ScreenSessions
from .utils import logger


def default_geocoder():
    try:
        return GoogleGeocoder(get_api_key())
    except ConfigurationError as e:
        logger.error("%s; geocoding disabled", e.message)
        return None


def create_app(store=None, geocoder=None, bind=None) -> FastAPI:
    app = FastAPI(title="Property Explorer")
    app.state.store = store or SqlPropertyStore(SessionLocal)
    app.state.geocoder = geocoder if geocoder is not None else default_geocoder()
    app.state.capture_sessions = ScreenSessions(
        lambda: CaptureWorkflow(app.state.geocoder, app.state.store)
    )
    app.state.listing_sessions = ScreenSessions(ListingWorkflow)
    app.include_router(api_router)

    @app.on_event("startup")
    def on_startup_create_tables():
        Base.metadata.create_all(bind=bind or engine)

    @app.on_event("shutdown")
    def on_shutdown_close_geocoder():
        if hasattr(app.state.geocoder, "close"):
            app.state.geocoder.close()

    return app


app = create_app()


def main():
    import uvicorn
    uvicorn.run(
        "propertymap.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )
