import time
import random
import logging
from typing import Callable, TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlmodel import Session

from bookheaven.errors import StorageFailure
from bookheaven.services.repository import BookstoreRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_in_transaction(
    engine: Engine,
    work: Callable[[BookstoreRepository], T],
    *,
    max_attempts: int = 1,
    action: str = "transaction",
) -> T:
    """Run ``work`` in a single transaction and commit what it did.

    Unique-key collisions and serialization/deadlock aborts mean another
    request touched the same rows first; those are retried up to
    ``max_attempts`` times from a fresh session. Anything else from the
    driver becomes ``StorageFailure``. Domain errors raised by ``work`` roll
    the transaction back and propagate unchanged.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            with Session(engine) as session:
                with session.begin():
                    return work(BookstoreRepository(session))

        except (IntegrityError, OperationalError) as e:
            if attempt >= max_attempts:
                logger.exception(f"{action} failed after {attempt} attempt(s)")
                raise StorageFailure(e) from e

            logger.warning(f"{action} conflicted on attempt {attempt}, retrying: {e}")
            time.sleep(0.01 * (2 ** attempt) + random.random() / 100)

        except SQLAlchemyError as e:
            logger.exception(f"{action} failed")
            raise StorageFailure(e) from e
