import logging

from sqlmodel import Session

from storefront.config import settings
from storefront.database import engine
from storefront.notifications.delivery import deliver_pending_emails

logger = logging.getLogger(__name__)


def run(batch_size: int = 100) -> None:
    """Drain the outbox in batches until a run sends nothing new."""
    with Session(engine) as session:
        while True:
            result = deliver_pending_emails(session, limit=batch_size)
            logger.info(f"Outbox batch: {result['sent']} sent, {result['failed']} failed")
            if result["sent"] == 0 or result["sent"] + result["failed"] < batch_size:
                break


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level.upper())
    run()
