# propertymap/services.py
"""Persistence collaborator used by the capture and listing workflows."""
from typing import Callable, List
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from . import crud, schemas
from .errors import PersistenceError
from .utils import logger


class SqlPropertyStore:
    """Create/read access to the property collection.

    Each call opens its own session, so a store can be shared by requests.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def create_record(self, fields: schemas.PropertyCreate) -> bool:
        db = self.session_factory()
        try:
            obj = crud.create_property(db, fields.model_dump())
            logger.info("Created property %s", obj.id)
            return True
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Failed to create property: %s", e)
            return False
        finally:
            db.close()

    def list_records(self) -> List[schemas.PropertyOut]:
        db = self.session_factory()
        try:
            rows = crud.list_properties(db)
            return [schemas.PropertyOut.model_validate(r) for r in rows]
        except SQLAlchemyError as e:
            logger.exception("Failed to list properties: %s", e)
            raise PersistenceError("Failed to load properties data") from e
        finally:
            db.close()
