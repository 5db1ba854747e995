# product_catalog/cache.py

"""
Local persistent cache for the client catalog state.
Holds the JSON-serialized product array under one named entry. Reads return
None when nothing usable is stored; writes never raise.
"""
import json
import logging
import os
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from .db import Base, make_engine, make_session_factory
from .models import CacheEntry

logger = logging.getLogger(__name__)

CACHE_KEY = os.getenv("CATALOG_CACHE_KEY", "catalog-products")


class LocalCache:
    def __init__(self, engine=None, key: str = CACHE_KEY):
        self.key = key
        self._engine = engine or make_engine()
        Base.metadata.create_all(bind=self._engine)
        self._session_factory = make_session_factory(self._engine)

    def load(self) -> Optional[List[dict]]:
        try:
            with self._session_factory() as db:
                entry = db.get(CacheEntry, self.key)
                payload = entry.payload if entry is not None else None
        except SQLAlchemyError as e:
            logger.warning(f"Could not read cache entry '{self.key}': {e}")
            return None
        if payload is None:
            return None
        try:
            data = json.loads(payload)
        except ValueError:
            logger.warning(f"Cache entry '{self.key}' is corrupt, ignoring it.")
            return None
        return data if isinstance(data, list) else None

    def save(self, products: List[dict]) -> bool:
        payload = json.dumps(products)
        try:
            with self._session_factory() as db:
                entry = db.get(CacheEntry, self.key)
                if entry is None:
                    db.add(CacheEntry(key=self.key, payload=payload))
                else:
                    entry.payload = payload
                db.commit()
        except SQLAlchemyError as e:
            logger.warning(f"Could not write cache entry '{self.key}': {e}")
            return False
        return True
