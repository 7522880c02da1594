# propertymap/models.py
"""SQLAlchemy ORM models for persisted entities.

Defines the `Property` model, the only entity the application stores.
"""
from sqlalchemy import Column, Integer, Text, Float, TIMESTAMP, func, Index
from .db import Base

class Property(Base):
    __tablename__ = "properties"
    id = Column(Integer, primary_key=True, index=True)
    broker = Column(Text)
    price = Column(Float)
    acres = Column(Float)
    latitude = Column(Float)
    longitude = Column(Float)
    city = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

Index("idx_properties_city", Property.city)
