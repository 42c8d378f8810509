import logging
from contextlib import contextmanager
from threading import Lock

from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from wellbeing_api.core import config
from wellbeing_api.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(config.DATABASE_URL, **_engine_options(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_booking_schema_checked = False


def ensure_booking_schema() -> None:
    """Create booking indexes missing from databases built by older releases."""
    global _booking_schema_checked

    if _booking_schema_checked:
        return

    with _schema_lock:
        if _booking_schema_checked:
            return

        from wellbeing_api.models.booking import Booking

        inspector = inspect(engine)

        if 'bookings' not in inspector.get_table_names():
            _booking_schema_checked = True
            return

        existing_indexes = {index['name'] for index in inspector.get_indexes('bookings')}

        with engine.begin() as connection:
            for index in sorted(Booking.__table__.indexes, key=lambda item: item.name):
                if index.name not in existing_indexes:
                    logger.info('Creating missing index %s.', index.name)
                    index.create(bind=connection)

        _booking_schema_checked = True


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def store_errors(db: Session, action: str):
    """Roll back and re-raise driver failures as ``StoreUnavailableError``."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Store failure while %s.', action)
        raise StoreUnavailableError() from exc


def ensure_database_ready(db: Session) -> None:
    with store_errors(db, 'checking the booking schema'):
        ensure_booking_schema()
