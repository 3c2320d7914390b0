"""Domain types shared by the KHQR encoder and services."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal

from .services.errors import InvalidCurrency

AmountInput = str | int | float | Decimal


class MerchantType(str, enum.Enum):
    INDIVIDUAL = "individual"
    MERCHANT = "merchant"


class Currency(str, enum.Enum):
    KHR = "KHR"
    USD = "USD"

    @property
    def numeric(self) -> str:
        """ISO 4217 numeric code carried in tag 53."""

        return _CURRENCY_NUMERIC[self]

    @classmethod
    def parse(cls, value: str | Currency) -> Currency:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise InvalidCurrency(value)


_CURRENCY_NUMERIC = {Currency.KHR: "116", Currency.USD: "840"}


class InitiationMethod(str, enum.Enum):
    STATIC = "11"
    DYNAMIC = "12"


@dataclass(frozen=True)
class KHQRConfig:
    """Immutable snapshot of everything that goes into one payload."""

    merchant_type: MerchantType
    bakong_account_id: str
    merchant_name: str
    merchant_id: str | None = None
    acquiring_bank: str | None = None
    account_information: str | None = None
    merchant_city: str | None = None
    currency: Currency = Currency.KHR
    amount: AmountInput | None = None
    is_static: bool = False
    bill_number: str | None = None
    mobile_number: str | None = None
    store_label: str | None = None
    terminal_label: str | None = None
    purpose_of_transaction: str | None = None
    upi_account_information: str | None = None
    merchant_alternate_language_preference: str | None = None
    merchant_name_alternate_language: str | None = None
    merchant_city_alternate_language: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "merchant_type", MerchantType(self.merchant_type))
        object.__setattr__(self, "currency", Currency.parse(self.currency))

    @property
    def initiation_method(self) -> InitiationMethod:
        return InitiationMethod.STATIC if self.is_static else InitiationMethod.DYNAMIC
