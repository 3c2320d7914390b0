"""KHQR generation service."""
from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Callable

from ..config import Settings, settings
from ..khqr_encoder import assemble, current_timestamp
from ..models import KHQRConfig, MerchantType
from ..monitoring import record_generated

logger = logging.getLogger("khqr.generator")


@dataclass(slots=True)
class GenerateResult:
    payload: str
    timestamp: str | None
    merchant_type: MerchantType
    md5: str
    crc: str


def payload_md5(payload: str) -> str:
    """Hex MD5 of the payload; Bakong uses it to look up the transaction."""

    return hashlib.md5(payload.encode("utf-8"), usedforsecurity=False).hexdigest()


class KHQRGenerator:
    def __init__(self, config: Settings | None = None, clock: Callable[[], str] = current_timestamp):
        self.config = config or settings
        self.clock = clock

    def generate(self, khqr: KHQRConfig, *, timestamp: int | str | None = None) -> GenerateResult:
        if timestamp is None and not khqr.is_static:
            timestamp = self.clock()
        encoded = assemble(
            khqr,
            timestamp=timestamp,
            default_city=self.config.default_merchant_city,
            merchant_category_code=self.config.merchant_category_code,
            country_code=self.config.country_code,
        )
        md5 = payload_md5(encoded.payload)
        mode = "static" if khqr.is_static else "dynamic"

        record_generated(khqr.merchant_type.value, mode)
        logger.info(
            "khqr generated",
            extra={
                "merchant_type": khqr.merchant_type.value,
                "mode": mode,
                "currency": khqr.currency.value,
                "md5": md5,
            },
        )

        return GenerateResult(
            payload=encoded.payload,
            timestamp=encoded.timestamp,
            merchant_type=khqr.merchant_type,
            md5=md5,
            crc=encoded.crc,
        )
