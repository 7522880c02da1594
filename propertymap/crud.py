# propertymap/crud.py
"""CRUD helpers for `Property` rows.

Records are only ever created and read; nothing here updates or deletes.
"""
from sqlalchemy import select
from .models import Property
from sqlalchemy.orm import Session
from typing import Dict, Any, List

def create_property(db: Session, data: Dict[str, Any]) -> Property:
    obj = Property(**data)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj

def get_property(db: Session, property_id: int):
    return db.get(Property, property_id)

def list_properties(db: Session) -> List[Property]:
    return list(db.scalars(select(Property).order_by(Property.id)))
