"""Utility helpers to build and parse EMV-style TLV payloads."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator

from .services.errors import InvalidTag, TLVDecodeError, ValueTooLong
from .truncate import utf8_byte_length

MAX_VALUE_BYTES = 99

_TWO_DIGITS = re.compile(r"[0-9]{2}")


@dataclass(frozen=True)
class TLVItem:
    tag: str
    value: str

    def serialize(self) -> str:
        """Render ``tag + length + value``; the length counts UTF-8 bytes."""

        if not _TWO_DIGITS.fullmatch(self.tag):
            raise InvalidTag(self.tag)
        length = utf8_byte_length(self.value)
        if length > MAX_VALUE_BYTES:
            raise ValueTooLong(self.tag, length)
        return f"{self.tag}{length:02d}{self.value}"


def encode_tlv(tag: str, value: str) -> str:
    return TLVItem(tag=tag, value=value).serialize()


def build_tlv(items: Iterable[TLVItem]) -> str:
    """Serialize iterable of TLV items into EMV string."""

    return "".join(item.serialize() for item in items)


def build_template(tag: str, items: Iterable[TLVItem | None]) -> TLVItem | None:
    """Wrap the non-empty sub-items into one template item.

    Sub-items that are ``None`` or carry an empty value are skipped. When
    nothing remains the template is omitted and ``None`` is returned.
    """

    content = build_tlv(item for item in items if item is not None and item.value)
    if not content:
        return None
    return TLVItem(tag=tag, value=content)


def parse_tlv(payload: str, *, strict: bool = False) -> Iterator[TLVItem]:
    """Parse TLV payload string into top-level TLV items.

    Lengths count UTF-8 bytes, so offsets are tracked over the encoded
    payload. Template values are yielded as raw encoded sub-content.
    Scanning stops at the first length that is not two digits. A final field
    that claims more bytes than remain is dropped, as are trailing fragments;
    with ``strict=True`` both raise :class:`TLVDecodeError` instead.
    """

    data = payload.encode("utf-8")
    errors = "strict" if strict else "replace"
    idx = 0
    total = len(data)
    while idx + 4 <= total:
        tag = data[idx : idx + 2].decode("utf-8", "replace")
        raw_length = data[idx + 2 : idx + 4].decode("utf-8", "replace")
        if strict and not _TWO_DIGITS.fullmatch(tag):
            raise TLVDecodeError(f"Invalid TLV tag {tag!r} at offset {idx}")
        if not _TWO_DIGITS.fullmatch(raw_length):
            if strict:
                raise TLVDecodeError(f"Invalid TLV length {raw_length!r} at offset {idx}")
            return
        value_start = idx + 4
        value_end = value_start + int(raw_length)
        if value_end > total:
            if strict:
                raise TLVDecodeError("Invalid TLV length exceeds payload")
            return
        try:
            value = data[value_start:value_end].decode("utf-8", errors)
        except UnicodeDecodeError as exc:
            raise TLVDecodeError(f"Tag {tag} splits a multi-byte character") from exc
        yield TLVItem(tag=tag, value=value)
        idx = value_end
    if strict and idx != total:
        raise TLVDecodeError("Dangling TLV data detected")


def decode_tlv(payload: str) -> dict[str, str]:
    """Decode top-level fields into a mapping; later duplicates win."""

    return {item.tag: item.value for item in parse_tlv(payload)}
