"""Pydantic schemas for API contracts."""
from __future__ import annotations

from pydantic import BaseModel, Field

from .models import KHQRConfig, MerchantType


class GenerateKHQRRequest(BaseModel):
    merchant_type: MerchantType = MerchantType.INDIVIDUAL
    bakong_account_id: str | None = Field(default=None, description="Bakong account, e.g. john_smith@devb")
    merchant_name: str | None = None
    merchant_id: str | None = None
    acquiring_bank: str | None = None
    account_information: str | None = None
    merchant_city: str | None = None
    currency: str = Field(default="KHR", description="KHR or USD")
    amount: str | int | float | None = None
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

    def to_config(self) -> KHQRConfig:
        data = self.model_dump()
        data["bakong_account_id"] = data["bakong_account_id"] or ""
        data["merchant_name"] = data["merchant_name"] or ""
        return KHQRConfig(**data)


class GenerateKHQRResponse(BaseModel):
    qr: str
    timestamp: str | None
    merchant_type: MerchantType
    md5: str
    crc: str


class PayloadRequest(BaseModel):
    payload: str = Field(description="KHQR payload string as read from the QR code")


class VerifyResponse(BaseModel):
    valid: bool


class DecodeResponse(BaseModel):
    valid: bool
    fields: dict[str, str]
    templates: dict[str, dict[str, str]]
