"""
Activation gate for the sync queue.

Suppresses remote calls until the watcher's initial scan is complete, or
until a backfill run opens it up front.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ActivationGate:
    """
    Single-writer flag consulted by the queue at dequeue time.

    Opening records a watermark: events whose enqueue sequence is below it
    were queued while the gate was closed and are still discarded once
    dequeued. The gate opens at most once; later calls are no-ops.
    """

    def __init__(self, is_open: bool = False):
        self._is_open = is_open
        self._watermark = 0
        self._opened_at: Optional[datetime] = datetime.now() if is_open else None
        self._reason: Optional[str] = "opened at startup" if is_open else None

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def watermark(self) -> int:
        return self._watermark

    def open(self, watermark: int = 0, reason: str = "") -> bool:
        """
        Open the gate.

        Args:
            watermark: First enqueue sequence number that may be dispatched
            reason: Free text for logging

        Returns:
            True if the gate changed state, False if it was already open
        """
        if self._is_open:
            logger.debug(f"Activation gate already open, ignoring ({reason})")
            return False

        self._is_open = True
        self._watermark = watermark
        self._opened_at = datetime.now()
        self._reason = reason
        logger.info(f"Activation gate opened: {reason or 'no reason given'} (watermark={watermark})")
        return True

    def admits(self, sequence: Optional[int]) -> bool:
        """Check whether an event with this enqueue sequence may be dispatched"""
        if not self._is_open:
            return False
        return (sequence or 0) >= self._watermark

    def get_status(self) -> Dict[str, Any]:
        return {
            "is_open": self._is_open,
            "watermark": self._watermark,
            "opened_at": self._opened_at.isoformat() if self._opened_at else None,
            "reason": self._reason
        }
