"""In-process event dispatch.

Listeners register with ``@on(event_name)`` and are awaited once per ``emit``,
in registration order. A failing listener is logged and its work rolled back;
it never fails the operation that emitted the event.
"""
from collections import defaultdict
from typing import Awaitable, Callable, Dict, List, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

REFERRAL_SUCCESSFUL = "referral.successful"

Listener = Callable[[dict, Optional[AsyncSession]], Awaitable[None]]

_listeners: Dict[str, List[Listener]] = defaultdict(list)


def on(event_name: str):
    """Register the decorated coroutine as a listener for ``event_name``."""
    def _register(func: Listener) -> Listener:
        if func not in _listeners[event_name]:
            _listeners[event_name].append(func)
        return func
    return _register


def listeners_for(event_name: str) -> List[Listener]:
    return list(_listeners.get(event_name, []))


async def emit(event_name: str, payload: dict, db: AsyncSession = None) -> int:
    """Deliver ``payload`` to every listener of ``event_name``.

    Returns the number of listeners that completed without raising.
    """
    delivered = 0
    for listener in listeners_for(event_name):
        try:
            await listener(payload, db)
            delivered += 1
        except Exception as e:
            logger.error(f"Listener {listener.__qualname__} failed for {event_name}: {e}", exc_info=True)
            if db is not None:
                await db.rollback()
    return delivered
