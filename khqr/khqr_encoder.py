"""KHQR payload assembler and CRC verifier.

Tags used by the KHQR profile of the EMVCo merchant-presented QR:

- 29 individual account template, 30 merchant account template
- 62 additional data, 64 alternate language
- 99 creation timestamp (dynamic payloads only)
- 63 CRC-16/CCITT-FALSE, always last
"""
from __future__ import annotations

import re
import time
from dataclasses import dataclass

from .amount import normalize_amount
from .crc import crc16_ccitt
from .models import KHQRConfig, MerchantType
from .services.errors import InvalidTimestamp, MissingRequiredField
from .tlv import TLVItem, build_template, build_tlv
from .truncate import truncate_utf8

TAG_PAYLOAD_FORMAT = "00"
TAG_POINT_OF_INITIATION = "01"
TAG_UPI_ACCOUNT = "15"
TAG_INDIVIDUAL_ACCOUNT = "29"
TAG_MERCHANT_ACCOUNT = "30"
TAG_MERCHANT_CATEGORY = "52"
TAG_CURRENCY = "53"
TAG_AMOUNT = "54"
TAG_COUNTRY = "58"
TAG_MERCHANT_NAME = "59"
TAG_MERCHANT_CITY = "60"
TAG_ADDITIONAL_DATA = "62"
TAG_CRC = "63"
TAG_ALTERNATE_LANGUAGE = "64"
TAG_TIMESTAMP = "99"

PAYLOAD_FORMAT_INDICATOR = "01"
CRC_PREFIX = f"{TAG_CRC}04"

DEFAULT_MERCHANT_CITY = "Phnom Penh"
DEFAULT_MERCHANT_CATEGORY_CODE = "5999"
DEFAULT_COUNTRY_CODE = "KH"

_TIMESTAMP_RE = re.compile(r"[0-9]+")

# Top-level emission order; tag 63 is appended after the rest are serialized.
FIELD_ORDER: tuple[str, ...] = (
    TAG_PAYLOAD_FORMAT,
    TAG_POINT_OF_INITIATION,
    TAG_UPI_ACCOUNT,
    TAG_INDIVIDUAL_ACCOUNT,
    TAG_MERCHANT_ACCOUNT,
    TAG_MERCHANT_CATEGORY,
    TAG_CURRENCY,
    TAG_AMOUNT,
    TAG_COUNTRY,
    TAG_MERCHANT_NAME,
    TAG_MERCHANT_CITY,
    TAG_ADDITIONAL_DATA,
    TAG_ALTERNATE_LANGUAGE,
    TAG_TIMESTAMP,
    TAG_CRC,
)

FIELD_BYTE_LIMITS: dict[str, int] = {
    "bakong_account_id": 32,
    "merchant_name": 25,
    "merchant_city": 15,
    "merchant_id": 32,
    "acquiring_bank": 32,
    "account_information": 32,
    "bill_number": 25,
    "mobile_number": 25,
    "store_label": 25,
    "terminal_label": 25,
    "purpose_of_transaction": 25,
    "upi_account_information": 31,
    "merchant_alternate_language_preference": 2,
    "merchant_name_alternate_language": 25,
    "merchant_city_alternate_language": 15,
}


@dataclass(frozen=True)
class EncodedPayload:
    payload: str
    crc: str
    timestamp: str | None = None


def _field(config: KHQRConfig, name: str) -> str | None:
    value = getattr(config, name)
    if not value:
        return None
    return truncate_utf8(value, FIELD_BYTE_LIMITS[name])


def _item(tag: str, value: str | None) -> TLVItem | None:
    return TLVItem(tag=tag, value=value) if value else None


def check_required(config: KHQRConfig) -> None:
    """Raise :class:`MissingRequiredField` for the first absent mandatory field."""

    if not config.bakong_account_id:
        raise MissingRequiredField("bakong_account_id")
    if not config.merchant_name:
        raise MissingRequiredField("merchant_name")
    if config.merchant_type is MerchantType.MERCHANT:
        if not config.merchant_id:
            raise MissingRequiredField("merchant_id", "merchant_id is required for merchant type")
        if not config.acquiring_bank:
            raise MissingRequiredField("acquiring_bank", "acquiring_bank is required for merchant type")


def _account_template(config: KHQRConfig) -> TLVItem | None:
    account_id = _item("00", _field(config, "bakong_account_id"))
    if config.merchant_type is MerchantType.INDIVIDUAL:
        return build_template(
            TAG_INDIVIDUAL_ACCOUNT,
            [
                account_id,
                _item("01", _field(config, "account_information")),
                _item("02", _field(config, "acquiring_bank")),
            ],
        )
    return build_template(
        TAG_MERCHANT_ACCOUNT,
        [
            account_id,
            _item("01", _field(config, "merchant_id")),
            _item("02", _field(config, "acquiring_bank")),
        ],
    )


def _additional_data_template(config: KHQRConfig) -> TLVItem | None:
    return build_template(
        TAG_ADDITIONAL_DATA,
        [
            _item("01", _field(config, "bill_number")),
            _item("02", _field(config, "mobile_number")),
            _item("03", _field(config, "store_label")),
            _item("07", _field(config, "terminal_label")),
            _item("08", _field(config, "purpose_of_transaction")),
        ],
    )


def _alternate_language_template(config: KHQRConfig) -> TLVItem | None:
    return build_template(
        TAG_ALTERNATE_LANGUAGE,
        [
            _item("00", _field(config, "merchant_alternate_language_preference")),
            _item("01", _field(config, "merchant_name_alternate_language")),
            _item("02", _field(config, "merchant_city_alternate_language")),
        ],
    )


def current_timestamp() -> str:
    """Milliseconds since the Unix epoch, as carried in tag 99."""

    return str(time.time_ns() // 1_000_000)


def assemble(
    config: KHQRConfig,
    *,
    timestamp: int | str | None = None,
    default_city: str = DEFAULT_MERCHANT_CITY,
    merchant_category_code: str = DEFAULT_MERCHANT_CATEGORY_CODE,
    country_code: str = DEFAULT_COUNTRY_CODE,
) -> EncodedPayload:
    """Build the complete KHQR payload string for ``config``.

    ``timestamp`` is only used for dynamic payloads; when omitted the wall
    clock is read. Static payloads never carry tag 99.
    """

    check_required(config)

    city = truncate_utf8(config.merchant_city or default_city, FIELD_BYTE_LIMITS["merchant_city"])
    amount = normalize_amount(config.amount, config.currency) if config.amount is not None else None

    created_at: str | None = None
    if not config.is_static:
        created_at = str(timestamp) if timestamp is not None else current_timestamp()
        if isinstance(timestamp, bool) or not _TIMESTAMP_RE.fullmatch(created_at):
            raise InvalidTimestamp(timestamp)

    fields: dict[str, TLVItem | None] = {
        TAG_PAYLOAD_FORMAT: TLVItem(tag=TAG_PAYLOAD_FORMAT, value=PAYLOAD_FORMAT_INDICATOR),
        TAG_POINT_OF_INITIATION: TLVItem(tag=TAG_POINT_OF_INITIATION, value=config.initiation_method.value),
        TAG_UPI_ACCOUNT: _item(TAG_UPI_ACCOUNT, _field(config, "upi_account_information")),
        TAG_MERCHANT_CATEGORY: TLVItem(tag=TAG_MERCHANT_CATEGORY, value=merchant_category_code),
        TAG_CURRENCY: TLVItem(tag=TAG_CURRENCY, value=config.currency.numeric),
        TAG_AMOUNT: _item(TAG_AMOUNT, amount),
        TAG_COUNTRY: TLVItem(tag=TAG_COUNTRY, value=country_code),
        TAG_MERCHANT_NAME: TLVItem(tag=TAG_MERCHANT_NAME, value=_field(config, "merchant_name") or ""),
        TAG_MERCHANT_CITY: TLVItem(tag=TAG_MERCHANT_CITY, value=city),
        TAG_ADDITIONAL_DATA: _additional_data_template(config),
        TAG_ALTERNATE_LANGUAGE: _alternate_language_template(config),
        TAG_TIMESTAMP: build_template(TAG_TIMESTAMP, [_item("00", created_at)]),
    }
    account = _account_template(config)
    if account is not None:
        fields[account.tag] = account

    items = [fields[tag] for tag in FIELD_ORDER if fields.get(tag) is not None]
    crc_input = f"{build_tlv(items)}{CRC_PREFIX}"
    crc = crc16_ccitt(crc_input)
    return EncodedPayload(payload=f"{crc_input}{crc}", crc=crc, timestamp=created_at)


def verify_crc(payload: str) -> bool:
    """Check the trailing tag 63 checksum of ``payload``.

    The last ``6304`` occurrence is taken as the CRC field, so free-text
    values containing the same characters earlier do not interfere. Never
    raises; anything malformed is reported as ``False``.
    """

    if not isinstance(payload, str):
        return False
    idx = payload.rfind(CRC_PREFIX)
    if idx < 0:
        return False
    provided = payload[idx + len(CRC_PREFIX) : idx + len(CRC_PREFIX) + 4]
    if len(provided) != 4:
        return False
    expected = crc16_ccitt(payload[: idx + len(CRC_PREFIX)])
    return provided.upper() == expected.upper()
