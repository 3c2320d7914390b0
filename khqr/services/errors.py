"""Shared service error definitions."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ServiceError(Exception):
    code: str
    message: str
    status_code: int = 400

    def __str__(self) -> str:  # noqa: D401 override
        return f"{self.code}: {self.message}"


class MissingRequiredField(ServiceError):
    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(code="ERR_MISSING_FIELD", message=message or f"{field} is required")
        self.field = field


class InvalidTag(ServiceError):
    def __init__(self, tag: str) -> None:
        super().__init__(code="ERR_INVALID_TAG", message=f"Invalid tag: {tag!r}", status_code=500)
        self.tag = tag


class ValueTooLong(ServiceError):
    def __init__(self, tag: str, length: int) -> None:
        super().__init__(
            code="ERR_VALUE_TOO_LONG",
            message=f"TLV value too long for tag {tag}: {length} bytes",
            status_code=500,
        )
        self.tag = tag
        self.length = length


class InvalidAmount(ServiceError):
    def __init__(self, value: object, message: str | None = None) -> None:
        super().__init__(code="ERR_INVALID_AMOUNT", message=message or f"Amount must be numeric: {value!r}")
        self.value = value


class InvalidCurrency(ServiceError):
    def __init__(self, value: object) -> None:
        super().__init__(code="ERR_INVALID_CURRENCY", message=f"Currency must be KHR or USD, got {value!r}")
        self.value = value


class TLVDecodeError(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(code="ERR_BAD_PAYLOAD", message=message)


class InvalidTimestamp(ServiceError):
    def __init__(self, value: object) -> None:
        super().__init__(code="ERR_INVALID_TIMESTAMP", message=f"Timestamp must be decimal digits, got {value!r}")
        self.value = value
