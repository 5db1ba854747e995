# product_catalog/db.py

"""
Database configuration for the client-side catalog cache.
The storefront keeps its last known product list in a small local database
so it still has a catalog to show when the service is unreachable.
"""
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Local file by default; any SQLAlchemy URL works
CACHE_DATABASE_URL = os.getenv("CATALOG_CACHE_URL", "sqlite:///./catalog_cache.db")


def make_engine(url: str = CACHE_DATABASE_URL):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


def make_session_factory(engine):
    # Explicit commits only; nothing is flushed behind the caller's back.
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Base class for the cache ORM models
Base = declarative_base()
