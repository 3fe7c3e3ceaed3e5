"""Finalise pending cancellations and renew subscriptions that are due.

Run on a schedule (e.g. daily cron) inside the backend container:
    python -m marketplace.billing.scripts.run_maintenance
"""

import asyncio
import logging

from marketplace.database import async_session_factory, engine
from marketplace.services.subscription_service import (
    check_subscription_cancellations,
    check_subscription_renewals,
)

logger = logging.getLogger("marketplace.billing.maintenance")


async def main() -> None:
    async with async_session_factory() as session:
        try:
            cancelled = await check_subscription_cancellations(session)
            await session.commit()
            renewed = await check_subscription_renewals(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
    await engine.dispose()

    logger.info("Maintenance done: %d cancellations, %d renewals processed", cancelled, renewed)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(main())
