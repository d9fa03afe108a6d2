"""Post-commit side effects.

These run from FastAPI ``BackgroundTasks`` after the response is sent. They
only log for now; mail and payment-provider delivery hang off these hooks.
"""

import logging
from uuid import UUID

logger = logging.getLogger(__name__)


def booking_created(booking_id: UUID, deposit_cents: int) -> None:
    logger.info("Booking %s awaiting deposit of %d cents.", booking_id, deposit_cents)


def booking_cancelled(booking_id: UUID, refund_eligible: bool, deposit_cents: int) -> None:
    """Notify the customer and, when eligible, queue the refund follow-up."""
    if refund_eligible:
        logger.info("Refund follow-up for booking %s: %d cents.", booking_id, deposit_cents)
    else:
        logger.info("Booking %s cancelled without refund.", booking_id)
