"""Validation of free-text plant name fields before they are stored."""
from __future__ import annotations

from typing import Optional

from ..errors import (
    EmptyNameError,
    InvalidEncodingError,
    NameTooLongError,
    NonAsciiCharacterError,
)

NAME_MAX_LEN = 255
ASCII_MAX = 127


def sanitize_common_name(raw: Optional[str]) -> str:
    """
    Trim a plant common name and check it.

    The trimmed name must be non-empty, at most NAME_MAX_LEN code points long
    and encodable as UTF-8 (strings decoded with surrogateescape are not).
    Returns the trimmed name.
    """
    name = (raw or "").strip()
    if not name:
        raise EmptyNameError("Common name is empty")
    if len(name) > NAME_MAX_LEN:
        raise NameTooLongError(f"Common name length is greater than {NAME_MAX_LEN}")
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidEncodingError("Common name is not UTF-8") from None
    return name


def sanitize_scientific_name(raw: Optional[str]) -> str:
    """
    Trim a generic or specific name and check it.

    At most NAME_MAX_LEN characters, ASCII only. Empty is accepted.
    """
    name = (raw or "").strip()
    if len(name) > NAME_MAX_LEN:
        raise NameTooLongError(f"Scientific name length is greater than {NAME_MAX_LEN}")
    if not is_ascii(name):
        raise NonAsciiCharacterError("Scientific name is not ASCII")
    return name


def is_ascii(s: str) -> bool:
    return all(ord(ch) <= ASCII_MAX for ch in s)
