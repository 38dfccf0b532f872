import logging
import time

from sqlalchemy.exc import OperationalError

from wwallet.db.base import Base
from wwallet.db.session import engine

# force import models so SQLAlchemy knows them
from wwallet.models import (  # noqa: F401
    account,
    api_settings,
    gift_code,
    ledger,
    notification,
    registration,
    requests,
    transaction,
)

logger = logging.getLogger(__name__)


def init_db(attempts: int = 7) -> None:
    logger.info("Creating database tables...")

    for attempt in range(1, attempts + 1):
        try:
            Base.metadata.create_all(bind=engine)
            logger.info("Done.")
            return
        except OperationalError as e:
            logger.warning("DB not ready (attempt %s/%s): %s", attempt, attempts, e)
            time.sleep(min(2 * attempt, 10))

    raise RuntimeError("Database not reachable after retries. Startup aborted.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
