import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, configure_sqlite, get_db
import models.users, models.log, models.catalog, models.stock, models.equipment, models.consumable  # noqa: F401
from models.users import User
from models.catalog import Site, Department, EquipmentType, Employee
from models.stock import StockItem
from utils.tokenJWT import get_current_user


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def user(db):
    u = User(email="tech@example.com", name="Tech", role="tech")
    db.add(u)
    db.commit()
    return u


@pytest.fixture()
def site(db):
    s = Site(name="Sede Central", address="Av. Principal 1")
    db.add(s)
    db.commit()
    return s


@pytest.fixture()
def department(db, site):
    d = Department(name="Sistemas", site_id=site.id)
    db.add(d)
    db.commit()
    return d


@pytest.fixture()
def employee(db, site, department):
    e = Employee(first_name="Ana", last_name="Rojas", position="Analyst",
                 site_id=site.id, department_id=department.id)
    db.add(e)
    db.commit()
    return e


@pytest.fixture()
def router_type(db):
    t = EquipmentType(name="Router", requires_ip=True, requires_serial=True)
    db.add(t)
    db.commit()
    return t


@pytest.fixture()
def server_type(db):
    t = EquipmentType(name="Servidor", requires_ip=True, requires_serial=True)
    db.add(t)
    db.commit()
    return t


@pytest.fixture()
def make_stock(db, router_type):
    """Factory: make_stock(total=5) -> StockItem with everything available."""
    def _make(total=5, available=None, assigned=0, brand="Cisco", model=None, equipment_type=None, **kw):
        item = StockItem(
            brand=brand,
            model=model or f"SG{db.query(StockItem).count() + 200}",
            equipment_type_id=(equipment_type or router_type).id,
            total_qty=total,
            available_qty=total - assigned if available is None else available,
            assigned_qty=assigned,
            **kw,
        )
        db.add(item)
        db.commit()
        return item
    return _make


@pytest.fixture()
def counters(db):
    """counters(id) -> (total, available, assigned) as stored, or None once deleted."""
    def _counters(stock_item_id):
        item = db.get(StockItem, stock_item_id, populate_existing=True)
        if item is None:
            return None
        return item.total_qty, item.available_qty, item.assigned_qty
    return _counters


@pytest.fixture()
def client(db, user):
    from main import app

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
