"""
Lightweight Event System

In-process publish/subscribe used to propagate writes to derived data
(e.g. check-in inserts feeding the resonance log). Handlers run
synchronously, in the publisher's transaction, in subscription order.
"""
import logging
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

# Event registry: event_name -> list of handlers
_event_handlers: Dict[str, List[Callable]] = {}


def subscribe(event_name: str, handler: Callable):
    """
    Subscribe a handler function to an event.

    Subscribing the same handler twice is a no-op, so modules that register
    on import can be re-imported safely.

    Example:
        def on_checkin_created(db, user_id, category_id, day):
            ...

        subscribe(EVENT_CHECKIN_CREATED, on_checkin_created)
    """
    handlers = _event_handlers.setdefault(event_name, [])
    if handler in handlers:
        return

    handlers.append(handler)
    logger.debug(f"Subscribed handler to event: {event_name}")


def unsubscribe(event_name: str, handler: Callable) -> bool:
    """Remove a handler. Returns True if it was subscribed."""
    handlers = _event_handlers.get(event_name, [])
    if handler not in handlers:
        return False
    handlers.remove(handler)
    return True


def handlers_for(event_name: str) -> List[Callable]:
    return list(_event_handlers.get(event_name, []))


def emit(event_name: str, **kwargs) -> int:
    """
    Emit an event, calling all subscribed handlers.

    A failing handler is logged and skipped; it never propagates into the
    publishing write. Returns the number of handlers that completed.

    Example:
        emit(EVENT_CHECKIN_CREATED, db=db, user_id=user_id, category_id=category_id, day=day)
    """
    completed = 0
    for handler in handlers_for(event_name):
        try:
            handler(**kwargs)
            completed += 1
        except Exception as e:
            logger.error(f"Error in event handler for {event_name}: {e}", exc_info=True)
    return completed


# Common event names
EVENT_CHECKIN_CREATED = 'checkin.created'
