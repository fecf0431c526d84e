"""
Publish/subscribe hub for recognition events.

The pipeline and the template store announce what happened; the CLI, the
transcript logger or a UI listen without the core knowing about them.

Usage:
    bus = EventBus()
    bus.subscribe(Events.LETTER_STABLE, on_letter)
    bus.emit(Events.LETTER_STABLE, letter="A", score=0.12)
"""

import time
import logging
import threading
from collections import defaultdict, deque
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def _callback_name(callback) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


class EventBus:
    """Synchronous event dispatch, highest priority first.

    Each pipeline owns its own bus. Listener exceptions are logged and
    swallowed: a broken subscriber must not stop a frame from classifying.
    """

    def __init__(self, max_history: int = 100):
        self._lock = threading.Lock()
        self._listeners = defaultdict(list)  # event -> [(priority, seq, callback)]
        self._seq = 0
        self._history = deque(maxlen=max_history)
        self._enabled = True

    def subscribe(self, event_name: str, callback: Callable, priority: int = 0) -> Callable:
        """Register ``callback(**data)`` for ``event_name``.

        Listeners with equal priority run in subscription order. Returns the
        callback.
        """
        with self._lock:
            self._seq += 1
            entries = self._listeners[event_name]
            entries.append((priority, self._seq, callback))
            entries.sort(key=lambda entry: (-entry[0], entry[1]))
        logger.debug("Listener %s subscribed to '%s' (priority=%d)",
                     _callback_name(callback), event_name, priority)
        return callback

    def unsubscribe(self, event_name: str, callback: Callable) -> bool:
        """Remove ``callback``; returns False if it was not subscribed."""
        with self._lock:
            entries = self._listeners.get(event_name, [])
            kept = [entry for entry in entries if entry[2] is not callback]
            removed = len(kept) != len(entries)
            if kept:
                self._listeners[event_name] = kept
            else:
                self._listeners.pop(event_name, None)
        return removed

    def emit(self, event_name: str, **data) -> int:
        """Deliver ``data`` to every listener of ``event_name``.

        Returns:
            Number of listeners that handled the event without raising.
        """
        if not self._enabled:
            return 0

        with self._lock:
            callbacks = [entry[2] for entry in self._listeners.get(event_name, ())]
            self._history.append({
                "event": event_name,
                "time": time.time(),
                "data_keys": sorted(data),
            })

        delivered = 0
        for callback in callbacks:
            try:
                callback(**data)
                delivered += 1
            except Exception as e:
                logger.error("Listener %s failed on '%s': %s",
                             _callback_name(callback), event_name, e)
        return delivered

    def clear(self, event_name: Optional[str] = None):
        """Drop the listeners of one event, or of every event."""
        with self._lock:
            if event_name is None:
                self._listeners.clear()
            else:
                self._listeners.pop(event_name, None)

    def set_enabled(self, enabled: bool):
        self._enabled = enabled

    @property
    def listener_count(self) -> int:
        with self._lock:
            return sum(len(entries) for entries in self._listeners.values())

    def get_history(self, last_n: int = 10) -> list:
        """Most recent emitted events, oldest first."""
        with self._lock:
            history = list(self._history)
        return history[-last_n:] if last_n else history


class Events:
    """Event names, kept as constants to avoid typos."""

    # Pipeline
    HAND_LOST = "hand_lost"
    LETTER_PREDICTED = "letter_predicted"
    LETTER_STABLE = "letter_stable"

    # Template store
    TEMPLATE_ADDED = "template_added"
    TEMPLATES_CLEARED = "templates_cleared"
    TEMPLATES_IMPORTED = "templates_imported"

    # Model
    MODEL_LOADED = "model_loaded"
