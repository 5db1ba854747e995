# product_catalog/models.py

"""
SQLAlchemy models for the client-side catalog cache.
"""

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from .db import Base


class CacheEntry(Base):
    """
    One named cache entry. The catalog is stored whole, as the JSON text of
    the product array, under a single key.
    """

    __tablename__ = "catalog_cache_entries"

    key = Column(String(255), primary_key=True)

    # JSON-serialized product array
    payload = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<CacheEntry(key='{self.key}', size={len(self.payload or '')})>"
