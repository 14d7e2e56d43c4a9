import contextlib
import logging
from typing import Optional

from database.repositories.tee_time import TeeTimeRepository

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def tee_time_uow(session_factory=None, isolation_level: Optional[str] = None):
    """Per-unit-of-work transaction scope.

    Yields a TeeTimeRepository bound to a fresh Session. Commits on success,
    rolls back on exception, always closes.

    When isolation_level is given (e.g. "SERIALIZABLE" for slot joins) it is
    applied to the session's connection before any statement runs, so the
    whole unit of work executes at that level.

    Usage:
        with tee_time_uow(isolation_level="SERIALIZABLE") as repo:
            slot = repo.join_slot(tee_time_id, user_id)
        # commit happens automatically on successful exit
    """
    if session_factory is None:
        from database.database import SessionLocal
        session_factory = SessionLocal

    session = session_factory()
    try:
        if isolation_level:
            session.connection(execution_options={"isolation_level": isolation_level})
        repo = TeeTimeRepository(session)
        yield repo
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
