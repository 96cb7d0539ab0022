import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from storefront.database import Base, get_db, init_db, make_engine
from storefront.main import app
from storefront.models import Attribute, Product


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def attributes(db):
    """Seeded catalog by name: color (COLOR), size (SELECT), material (TEXT)."""
    return {a.name: a for a in db.query(Attribute).all()}


@pytest.fixture
def make_product(db):
    def _make(name="Classic Tee", base_price="19.90", **kwargs):
        product = Product(name=name, base_price=Decimal(base_price), **kwargs)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make
