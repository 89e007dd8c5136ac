# =============================================================================
# app/services/examples.py - Example Service
# =============================================================================
# Stand-in for an optional side effect (notification, audit log, ...) that
# may fail without the request failing. Replace with a real integration.
# =============================================================================

import asyncio
import logging
import random

logger = logging.getLogger(__name__)


async def example_with_random_throw(failure_rate: float = 0.5) -> str:
    """
    Pretend to call an external service; fails about failure_rate of the time.

    Raises:
        RuntimeError: When the simulated call fails
    """
    await asyncio.sleep(0)
    if random.random() < failure_rate:
        logger.debug("Example service failed on purpose")
        raise RuntimeError("Random failure from example service")
    return "ok"
