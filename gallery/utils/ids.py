"""Time-ordered opaque identifiers for albums and media."""

import secrets
import string
import time

_DIGITS = string.digits + string.ascii_lowercase


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(_DIGITS[rem])
    return "".join(reversed(out))


def new_id(prefix: str = "") -> str:
    """Return a new id: base-36 epoch milliseconds followed by 48 random bits.

    The timestamp part sorts coarsely by creation time; ids made in the same
    millisecond are ordered by chance only.
    """
    return f"{prefix}{_base36(time.time_ns() // 1_000_000)}{secrets.token_hex(6)}"


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return time.time_ns() // 1_000_000
