"""
Thread pool for synchronous PayPay providers.

A sync provider call that outlives its gateway timeout is abandoned, not
stopped, and keeps its worker until it returns. busy_workers() counts those
calls too, and a warning is logged once every worker is taken.
"""
import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

GATEWAY_WORKERS = 8

_executor: ThreadPoolExecutor | None = None
_busy = 0
_busy_lock = threading.Lock()

T = TypeVar("T")


def get_executor() -> ThreadPoolExecutor:
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(max_workers=GATEWAY_WORKERS, thread_name_prefix="gateway_")
        logger.info(f"Gateway thread pool started ({GATEWAY_WORKERS} workers)")
    return _executor


def busy_workers() -> int:
    """Provider calls currently holding a worker, abandoned ones included."""
    with _busy_lock:
        return _busy


def _tracked(func: Callable[..., T], args: tuple, kwargs: dict) -> T:
    global _busy
    with _busy_lock:
        _busy += 1
        saturated = _busy >= GATEWAY_WORKERS
    if saturated:
        logger.warning(
            f"All {GATEWAY_WORKERS} gateway workers busy; further PayPay queries will queue"
        )
    try:
        return func(*args, **kwargs)
    finally:
        with _busy_lock:
            _busy -= 1


async def run_blocking(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a sync provider call on the gateway pool."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(get_executor(), _tracked, func, args, kwargs)


def shutdown_executor() -> None:
    """Stop the pool on app shutdown; waits for in-flight provider calls."""
    global _executor
    if _executor:
        _executor.shutdown(wait=True)
        _executor = None
        logger.info("Gateway thread pool stopped")
