"""
Transaction boundary shared by the ledger services.
"""
from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from gymledger import db
from gymledger.errors import ConcurrencyConflict, PersistenceFailure

_DEPTH_KEY = 'gymledger_uow_depth'


@contextmanager
def unit_of_work():
    """
    Run a block of ledger writes as one transaction.

    The outermost block commits on success; nested blocks only flush, so an
    operation composed of others (create inside upgrade, payment inside
    create) lands or fails as a whole. Any failure rolls back the outermost
    transaction. Store errors are re-raised as typed ledger errors.

    Yields:
        Session: The current database session
    """
    session = db.session
    depth = session.info.get(_DEPTH_KEY, 0)
    session.info[_DEPTH_KEY] = depth + 1
    try:
        yield session
        if depth == 0:
            session.commit()
        else:
            session.flush()
    except StaleDataError as exc:
        _rollback(session, depth)
        raise ConcurrencyConflict(
            "The subscription was modified by a concurrent operation; retry the request"
        ) from exc
    except SQLAlchemyError as exc:
        _rollback(session, depth)
        current_app.logger.error("Ledger transaction failed: %s", exc)
        raise PersistenceFailure(f"Database error: {exc.__class__.__name__}") from exc
    except Exception:
        _rollback(session, depth)
        raise
    finally:
        session.info[_DEPTH_KEY] = depth


def _rollback(session, depth):
    if depth == 0:
        session.rollback()
