import time
import asyncio
import functools
import logging

from core.config import settings

logger = logging.getLogger("dyor_hub.timing")


def _report(name: str, start: float, failed: bool) -> None:
    elapsed_ms = (time.perf_counter() - start) * 1000.0
    outcome = "failed" if failed else "ok"
    if elapsed_ms >= settings.SLOW_CALL_MS:
        logger.warning(f"[timing] slow call {name} {outcome} after {elapsed_ms:.2f} ms")
    else:
        logger.debug(f"[timing] {name} {outcome} in {elapsed_ms:.2f} ms")


def timeit(label: str = None):
    """
    Log how long a service call takes, and whether it raised.

    Calls over SLOW_CALL_MS are logged at WARNING, the rest at DEBUG.

        @timeit("get_referral_leaderboard")
        async def get_referral_leaderboard(...):
            ...
    """

    def _decorate(func):
        name = label or func.__qualname__

        if asyncio.iscoroutinefunction(func):

            @functools.wraps(func)
            async def _aw(*args, **kwargs):
                start = time.perf_counter()
                failed = True
                try:
                    result = await func(*args, **kwargs)
                    failed = False
                    return result
                finally:
                    _report(name, start, failed)

            return _aw

        @functools.wraps(func)
        def _w(*args, **kwargs):
            start = time.perf_counter()
            failed = True
            try:
                result = func(*args, **kwargs)
                failed = False
                return result
            finally:
                _report(name, start, failed)

        return _w

    return _decorate
