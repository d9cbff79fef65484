# backend/database.py
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from config import settings

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# SQLAlchemy requires postgresql://, some hosts still hand out postgres://
if SQLALCHEMY_DATABASE_URL.startswith("postgres://"):
    SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace("postgres://", "postgresql://", 1)


def configure_sqlite(engine):
    """Make every SQLite transaction take the write lock up front.

    pysqlite only emits BEGIN before the first DML statement, so a row read
    "inside" a transaction is not protected against a concurrent writer.
    BEGIN IMMEDIATE serializes writers, which is what the stock ledger's
    re-read-then-update relies on (PostgreSQL gets SELECT ... FOR UPDATE).
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False, "timeout": settings.SQLITE_BUSY_TIMEOUT}
else:
    connect_args = {}

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)

if engine.dialect.name == "sqlite":
    configure_sqlite(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """Commit what the block did, or roll all of it back and re-raise."""
    try:
        yield db
        db.commit()
    except Exception as exc:
        logger.warning("Transaction rolled back: %s", exc)
        db.rollback()
        raise


def init_db():
    # Import models so every table is registered on Base.metadata
    import models.users, models.log, models.catalog, models.stock, models.equipment, models.consumable  # noqa: F401
    Base.metadata.create_all(bind=engine)
