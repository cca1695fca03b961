import logging
import time
from pathlib import Path
from typing import Callable, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session

from gigflow.shared.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Local SQLite DB under STORAGE_DIR (created if missing)
Path(settings.STORAGE_DIR).mkdir(parents=True, exist_ok=True)
DB_URL = settings.DATABASE_URL
_IS_SQLITE = DB_URL.startswith("sqlite")

engine = create_engine(
    DB_URL,
    connect_args={"check_same_thread": False, "timeout": settings.SQLITE_BUSY_TIMEOUT} if _IS_SQLITE else {},
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

if _IS_SQLITE:
    @event.listens_for(engine, "connect")
    def _sqlite_pragmas(dbapi_conn, _record):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()

class Base(DeclarativeBase):
    pass

# FastAPI dep
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    # import models so they register with Base.metadata
    from gigflow.auth import models as auth_models  # noqa: F401
    from gigflow.gigs import models as gigs_models  # noqa: F401
    from gigflow.bids import models as bids_models  # noqa: F401
    Base.metadata.create_all(bind=engine)

def atomic(db: Session, work: Callable[[Session], T], attempts: int | None = None) -> T:
    """
    Run `work(db)` and commit it as a single transaction.

    Transient store errors (lock timeouts, dropped connections) roll back and retry;
    anything else, domain errors included, rolls back and propagates. Nothing written
    by `work` is visible to other sessions unless the commit succeeds.
    """
    attempts = attempts or settings.TX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            result = work(db)
            db.commit()
            return result
        except OperationalError:
            db.rollback()
            if attempt == attempts:
                logger.exception("transaction aborted after %d attempts", attempts)
                raise
            logger.warning("transient store error, retrying (%d/%d)", attempt, attempts)
            time.sleep(0.05 * attempt)
        except Exception:
            db.rollback()
            raise
    raise RuntimeError("unreachable")
