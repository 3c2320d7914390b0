"""UTF-8 aware truncation for KHQR free-text fields."""
from __future__ import annotations


def utf8_byte_length(value: str) -> int:
    return len(value.encode("utf-8"))


def truncate_utf8(value: str, max_bytes: int) -> str:
    """Cut ``value`` to at most ``max_bytes`` UTF-8 bytes without splitting a code point."""

    if utf8_byte_length(value) <= max_bytes:
        return value
    used = 0
    end = 0
    for ch in value:
        size = utf8_byte_length(ch)
        if used + size > max_bytes:
            break
        used += size
        end += 1
    return value[:end]
