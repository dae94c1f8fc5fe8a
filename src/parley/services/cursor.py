"""Opaque pagination cursor codec for message history.

A cursor names the last message a caller has already seen. It maps one-to-one
onto the message id, which is strictly increasing, so a page boundary can
never fall between two messages that share a timestamp.
"""

from __future__ import annotations

from parley.core.errors import InvalidCursorError

# Message ids are stored as signed 64-bit integers.
MAX_CURSOR_VALUE = 2**63 - 1


def encode_cursor(message_id: int) -> str:
    """Return the cursor token for a message id."""
    if isinstance(message_id, bool) or not isinstance(message_id, int):
        raise TypeError("message_id must be an int")
    if message_id < 0 or message_id > MAX_CURSOR_VALUE:
        raise ValueError("message_id is outside the 64-bit id range")
    return str(message_id)


def decode_cursor(token: str) -> int:
    """Return the message id named by a cursor token.

    Raises:
        InvalidCursorError: If the token was not produced by :func:`encode_cursor`.
    """
    # str.isdigit() also accepts non-ASCII digits, which int() would happily parse.
    if not token or not token.isascii() or not token.isdigit():
        raise InvalidCursorError("Invalid cursor")
    if len(token) > 1 and token.startswith("0"):
        raise InvalidCursorError("Invalid cursor")
    value = int(token)
    if value > MAX_CURSOR_VALUE:
        raise InvalidCursorError("Invalid cursor")
    return value
