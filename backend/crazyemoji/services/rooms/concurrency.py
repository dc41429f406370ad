import functools

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from crazyemoji import db
from crazyemoji.errors import Conflict


def conflict_retry(func):
    """Run ``func`` as one transaction, re-running it after a lost race.

    A race shows up as ``StaleDataError`` (a versioned row changed under us)
    or ``IntegrityError`` (a unique key was taken first). Each re-run reads
    fresh state, so it either succeeds or fails with the business error the
    winner's state implies. After ``CONFLICT_RETRIES`` lost attempts the call
    fails with the retryable ``Conflict``.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        attempts = max(1, int(current_app.config.get('CONFLICT_RETRIES', 3)))
        for attempt in range(1, attempts + 1):
            try:
                result = func(*args, **kwargs)
                db.session.commit()
                return result
            except (StaleDataError, IntegrityError) as exc:
                db.session.rollback()
                current_app.logger.warning(
                    f"[conflict] op={func.__name__} attempt={attempt}/{attempts} error={exc.__class__.__name__}"
                )
            except Exception:
                db.session.rollback()
                raise
        raise Conflict()

    return wrapper
