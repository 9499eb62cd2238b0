from threading import Lock

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from clinic_backend.core import config


def build_engine(database_url: str):
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Request threads share pooled connections; writers wait on the file lock.
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(database_url, echo=config.DATABASE_ECHO, connect_args=connect_args)


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_booking_schema_checked = False


def ensure_booking_schema() -> None:
    """Create any missing booking tables and indexes once per process.

    Startup tolerates an unreachable database, so requests call this before
    touching the tables. The models must be imported by then; the routers do
    that.
    """
    global _booking_schema_checked

    if _booking_schema_checked:
        return

    with _schema_lock:
        if _booking_schema_checked:
            return

        Base.metadata.create_all(bind=engine)
        _booking_schema_checked = True
