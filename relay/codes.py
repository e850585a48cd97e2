"""Retrieval code minting."""

import secrets
import string
import time
from typing import Callable, Optional

from common.constants import CODE_LENGTH

BASE36_ALPHABET = string.digits + string.ascii_lowercase
RANDOM_ALPHABET = string.digits + string.ascii_letters

TIMESTAMP_DIGITS = 4


def to_base36(value: int) -> str:
    """
    Encode a non-negative integer in base 36.

    Args:
        value: Integer to encode

    Returns:
        Lowercase base-36 string
    """
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def mint_code(now_ms: Optional[int] = None, length: int = CODE_LENGTH) -> str:
    """
    Mint a retrieval code.

    The code is the low-order base-36 digits of the millisecond timestamp
    followed by random alphanumeric characters. The timestamp part spreads
    codes minted at different moments; the random part separates codes
    minted in the same millisecond.

    Args:
        now_ms: Millisecond timestamp (defaults to the current time)
        length: Total code length

    Returns:
        Alphanumeric code of exactly ``length`` characters
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000

    stamp = to_base36(now_ms)[-TIMESTAMP_DIGITS:].rjust(TIMESTAMP_DIGITS, "0")
    random_part = "".join(
        secrets.choice(RANDOM_ALPHABET) for _ in range(length - TIMESTAMP_DIGITS)
    )
    return stamp + random_part


def is_valid_code(code: str, length: int = CODE_LENGTH) -> bool:
    """Check that ``code`` has the shape of a minted code."""
    return len(code) == length and code.isascii() and code.isalnum()


CodeMinter = Callable[[], str]
