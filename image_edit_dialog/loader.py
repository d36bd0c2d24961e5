"""
Decode request bookkeeping for asynchronous image loading (Qt-free).

Every decode (initial open, undo, redo) is issued as a ``DecodeTicket``
carrying a strictly increasing token.  Only the most recently issued
ticket is current; completions for older tickets, or for any ticket
issued before ``invalidate()`` (editor closed), must be ignored.
"""

import itertools
import logging
from dataclasses import dataclass, field

from PIL import Image

from image_edit_dialog.image_io import decode_image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodeTicket:
    """A pending decode of ``data``; ``reason`` is "open", "undo" or "redo"."""
    token: int
    data: bytes = field(repr=False)
    reason: str = "open"


class DecodeTracker:
    """Issues decode tickets and decides which completions may be applied."""

    def __init__(self):
        self._counter = itertools.count(1)
        self._current: DecodeTicket | None = None

    @property
    def pending(self) -> bool:
        return self._current is not None

    def issue(self, data: bytes, reason: str = "open") -> DecodeTicket:
        ticket = DecodeTicket(next(self._counter), data, reason)
        if self._current is not None:
            logger.debug("Decode #%d superseded by #%d", self._current.token, ticket.token)
        self._current = ticket
        return ticket

    def is_current(self, token: int) -> bool:
        return self._current is not None and token == self._current.token

    def settle(self, token: int) -> DecodeTicket | None:
        """Complete ``token`` and return its ticket, or None if it is stale."""
        if not self.is_current(token):
            logger.debug("Ignoring stale decode #%d", token)
            return None
        ticket, self._current = self._current, None
        return ticket

    def invalidate(self) -> None:
        """Make every outstanding ticket stale."""
        if self._current is not None:
            logger.debug("Invalidated in-flight decode #%d", self._current.token)
        self._current = None


def decode_ticket(ticket: DecodeTicket) -> Image.Image:
    """Decode a ticket's data; safe to call from a worker thread."""
    return decode_image(ticket.data)
