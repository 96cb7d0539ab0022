import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, declarative_base
from storefront.config import get_settings

logger = logging.getLogger(__name__)


def make_engine(database_url: str) -> Engine:
    """
    Engine for a database URL.

    SQLite connections are shared across FastAPI worker threads; an in-memory
    SQLite database lives on one pooled connection so every session sees it.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True, pool_size=10, max_overflow=20)

    options = {"connect_args": {"check_same_thread": False}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return create_engine(database_url, **options)


engine = make_engine(get_settings().database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Request-scoped session, closed when the response is sent."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


DEFAULT_ATTRIBUTES = [
    {"name": "color", "display_name": "Color", "type": "COLOR", "values": ["Black", "White", "Red", "Blue"], "display_order": 1},
    {"name": "size", "display_name": "Size", "type": "SELECT", "values": ["S", "M", "L", "XL"], "display_order": 2},
    {"name": "material", "display_name": "Material", "type": "TEXT", "values": [], "display_order": 3},
]


def init_db(bind=None):
    """Initialize database tables and seed the default attribute catalog."""
    from storefront.models import Attribute

    bind = bind or engine
    Base.metadata.create_all(bind=bind)

    db = SessionLocal(bind=bind)
    try:
        if db.query(Attribute).count() == 0:
            logger.info("Seeding default attributes...")
            for data in DEFAULT_ATTRIBUTES:
                db.add(Attribute(**data))
            db.commit()
            logger.info(f"Seeded {len(DEFAULT_ATTRIBUTES)} attributes")
    finally:
        db.close()
