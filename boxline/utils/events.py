"""
Opt-in observability hooks.

Channels report lifecycle and frame events to an optional observer
callable. Fields carry sizes, states, and key fingerprints only, never
key material or plaintext.
"""

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def emit(observer: Optional[Callable[[str, dict], None]], event: str, **fields) -> None:
    """
    Deliver one event to the observer, if any.

    Observer failures are logged and do not reach the caller.
    """
    if observer is None:
        return
    try:
        observer(event, fields)
    except Exception:
        logger.exception(f"Observer failed handling {event!r} event")
