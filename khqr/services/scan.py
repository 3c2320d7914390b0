"""Verification and inspection of scanned KHQR payloads."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..khqr_encoder import (
    TAG_ADDITIONAL_DATA,
    TAG_ALTERNATE_LANGUAGE,
    TAG_INDIVIDUAL_ACCOUNT,
    TAG_MERCHANT_ACCOUNT,
    TAG_TIMESTAMP,
    verify_crc,
)
from ..monitoring import record_verification
from ..tlv import decode_tlv

logger = logging.getLogger("khqr.scan")

TEMPLATE_TAGS = frozenset(
    {TAG_INDIVIDUAL_ACCOUNT, TAG_MERCHANT_ACCOUNT, TAG_ADDITIONAL_DATA, TAG_ALTERNATE_LANGUAGE, TAG_TIMESTAMP}
)


@dataclass(slots=True)
class InspectResult:
    valid: bool
    fields: dict[str, str]
    templates: dict[str, dict[str, str]] = field(default_factory=dict)


class VerificationService:
    def verify(self, payload: str) -> bool:
        valid = verify_crc(payload)
        record_verification(valid)
        if not valid:
            logger.info("khqr checksum mismatch", extra={"payload_length": len(payload)})
        return valid

    def inspect(self, payload: str) -> InspectResult:
        """Verify ``payload`` and decode its fields, one level into known templates."""

        fields = decode_tlv(payload)
        templates = {tag: decode_tlv(value) for tag, value in fields.items() if tag in TEMPLATE_TAGS}
        return InspectResult(valid=self.verify(payload), fields=fields, templates=templates)
