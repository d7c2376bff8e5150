"""
Retry wrapper for gateway exchanges.
Only TransportError is retried; the delay grows linearly with the attempt
number (or stays fixed). Everything else propagates on the first failure.
"""
import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from studio.services.gateway.base import GatewayConfig, TransportError
from studio.utils.metrics import gateway_retries_total

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_delay_seconds(config: GatewayConfig, attempt: int) -> float:
    """Delay before retry number `attempt` (1-based)."""
    base = config.retry_delay_ms / 1000.0
    if config.retry_backoff == "fixed":
        return base
    return base * attempt


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    config: GatewayConfig,
    *,
    operation: str,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run fn, retrying up to config.retry_count times on TransportError.
    The last TransportError is re-raised once the budget is spent.
    """
    max_attempts = config.retry_count + 1
    attempt = 0
    while True:
        attempt += 1
        try:
            result = await fn()
        except TransportError as e:
            if attempt >= max_attempts:
                logger.warning(
                    "gateway_retry_budget_exhausted",
                    extra={"operation": operation, "attempt": attempt, "error": str(e)},
                )
                raise
            delay = retry_delay_seconds(config, attempt)
            gateway_retries_total.labels(operation=operation).inc()
            logger.info(
                "gateway_retry_scheduled",
                extra={
                    "operation": operation,
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "delay_seconds": round(delay, 2),
                    "error": str(e),
                },
            )
            await sleep(delay)
            continue
        if attempt > 1:
            logger.info(
                "gateway_success_after_retry",
                extra={"operation": operation, "attempt": attempt},
            )
        return result
