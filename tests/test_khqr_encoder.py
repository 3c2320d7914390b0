from dataclasses import replace

import pytest

from khqr.crc import crc16_ccitt
from khqr.khqr_encoder import FIELD_ORDER, assemble, verify_crc
from khqr.models import MerchantType
from khqr.services.errors import InvalidTimestamp, MissingRequiredField, ValueTooLong
from khqr.tlv import decode_tlv

FIXED_TS = "1700000000000"

EXPECTED_STATIC_USD = (
    "000201"
    "010211"
    "29190015john_smith@devb"
    "52045999"
    "5303840"
    "54041.00"
    "5802KH"
    "5910John Smith"
    "6010Phnom Penh"
    "6304"
)


class TestAssembleLayout:
    def test_static_individual_exact_payload(self, individual_config):
        encoded = assemble(individual_config)
        assert encoded.payload == EXPECTED_STATIC_USD + crc16_ccitt(EXPECTED_STATIC_USD)
        assert encoded.crc == encoded.payload[-4:]
        assert encoded.timestamp is None

    def test_static_mode_has_no_timestamp(self, individual_config):
        fields = decode_tlv(assemble(individual_config).payload)
        assert fields["01"] == "11"
        assert "99" not in fields
        assert "63" in fields

    def test_static_mode_ignores_injected_timestamp(self, individual_config):
        encoded = assemble(individual_config, timestamp=FIXED_TS)
        assert encoded.timestamp is None
        assert "99" not in decode_tlv(encoded.payload)

    def test_dynamic_mode_wraps_timestamp(self, individual_config):
        encoded = assemble(replace(individual_config, is_static=False), timestamp=FIXED_TS)
        fields = decode_tlv(encoded.payload)
        assert fields["01"] == "12"
        assert encoded.timestamp == FIXED_TS
        assert decode_tlv(fields["99"]) == {"00": FIXED_TS}

    def test_dynamic_mode_reads_clock(self, individual_config):
        encoded = assemble(replace(individual_config, is_static=False))
        assert encoded.timestamp is not None
        assert encoded.timestamp.isdigit()
        assert decode_tlv(decode_tlv(encoded.payload)["99"]) == {"00": encoded.timestamp}

    @pytest.mark.parametrize("timestamp", ["", "abc", "17e11", "-1", -1, True])
    def test_dynamic_mode_rejects_bad_timestamp(self, individual_config, timestamp):
        with pytest.raises(InvalidTimestamp) as excinfo:
            assemble(replace(individual_config, is_static=False), timestamp=timestamp)
        assert excinfo.value.code == "ERR_INVALID_TIMESTAMP"

    def test_dynamic_mode_accepts_integer_timestamp(self, individual_config):
        encoded = assemble(replace(individual_config, is_static=False), timestamp=1700000000000)
        assert encoded.timestamp == FIXED_TS
        assert decode_tlv(decode_tlv(encoded.payload)["99"]) == {"00": FIXED_TS}

    def test_field_order(self, individual_config):
        config = replace(
            individual_config,
            is_static=False,
            upi_account_information="upi-123",
            bill_number="INV-1",
            merchant_alternate_language_preference="km",
            merchant_name_alternate_language="ចន",
        )
        tags = list(decode_tlv(assemble(config, timestamp=FIXED_TS).payload))
        assert tags == ["00", "01", "15", "29", "52", "53", "54", "58", "59", "60", "62", "64", "99", "63"]
        assert tags == [tag for tag in FIELD_ORDER if tag in tags]

    def test_settings_driven_constants(self, individual_config):
        config = replace(individual_config, merchant_city=None)
        fields = decode_tlv(
            assemble(config, default_city="Siem Reap", merchant_category_code="5411", country_code="KH").payload
        )
        assert fields["60"] == "Siem Reap"
        assert fields["52"] == "5411"


class TestAccountTemplates:
    def test_individual_optional_fields(self, individual_config):
        config = replace(individual_config, account_information="85512345678", acquiring_bank="Dev Bank")
        fields = decode_tlv(assemble(config).payload)
        assert decode_tlv(fields["29"]) == {"00": "john_smith@devb", "01": "85512345678", "02": "Dev Bank"}
        assert "30" not in fields

    def test_individual_without_bank(self, individual_config):
        fields = decode_tlv(assemble(individual_config).payload)
        assert decode_tlv(fields["29"]) == {"00": "john_smith@devb"}

    def test_merchant_template(self, merchant_config):
        fields = decode_tlv(assemble(merchant_config, timestamp=FIXED_TS).payload)
        assert fields["30"] == "0017dev_merchant@devb0104M1230203ABA"
        assert "29" not in fields

    @pytest.mark.parametrize("missing", ["merchant_id", "acquiring_bank"])
    def test_merchant_requires_id_and_bank(self, merchant_config, missing):
        with pytest.raises(MissingRequiredField) as excinfo:
            assemble(replace(merchant_config, **{missing: None}))
        assert excinfo.value.field == missing
        assert excinfo.value.code == "ERR_MISSING_FIELD"

    def test_individual_needs_neither(self, merchant_config):
        config = replace(merchant_config, merchant_type=MerchantType.INDIVIDUAL, merchant_id=None, acquiring_bank=None)
        assert verify_crc(assemble(config, timestamp=FIXED_TS).payload)

    @pytest.mark.parametrize("missing", ["bakong_account_id", "merchant_name"])
    def test_always_required(self, individual_config, missing):
        with pytest.raises(MissingRequiredField) as excinfo:
            assemble(replace(individual_config, **{missing: ""}))
        assert excinfo.value.field == missing


class TestAmountAndCurrency:
    def test_khr_amount_kept_integer(self, merchant_config):
        fields = decode_tlv(assemble(merchant_config, timestamp=FIXED_TS).payload)
        assert fields["53"] == "116"
        assert fields["54"] == "1000"

    def test_amount_omitted_when_unset(self, individual_config):
        fields = decode_tlv(assemble(replace(individual_config, amount=None)).payload)
        assert "54" not in fields

    def test_usd_amount_beyond_field_ceiling(self, individual_config):
        with pytest.raises(ValueTooLong):
            assemble(replace(individual_config, amount="1" * 120))

    def test_usd_amount_formatted_at_assembly(self, individual_config):
        fields = decode_tlv(assemble(replace(individual_config, amount=25)).payload)
        assert fields["54"] == "25.00"


class TestOptionalTemplates:
    def test_templates_omitted_when_empty(self, individual_config):
        config = replace(individual_config, bill_number="", merchant_alternate_language_preference=None)
        fields = decode_tlv(assemble(config).payload)
        assert "62" not in fields
        assert "64" not in fields

    def test_additional_data(self, individual_config):
        config = replace(
            individual_config,
            bill_number="INV-1",
            mobile_number="85512345678",
            store_label="Main",
            terminal_label="T1",
            purpose_of_transaction="Coffee",
        )
        fields = decode_tlv(assemble(config).payload)
        assert decode_tlv(fields["62"]) == {
            "01": "INV-1",
            "02": "85512345678",
            "03": "Main",
            "07": "T1",
            "08": "Coffee",
        }

    def test_alternate_language(self, individual_config):
        config = replace(
            individual_config,
            merchant_alternate_language_preference="khm",
            merchant_name_alternate_language="ចន ស្មីត",
            merchant_city_alternate_language="ភ្នំពេញ",
        )
        payload = assemble(config).payload
        alt = decode_tlv(decode_tlv(payload)["64"])
        assert alt["00"] == "kh"
        assert alt["01"] == "ចន ស្មីត"
        assert alt["02"] == "ភ្នំព"
        assert verify_crc(payload)


class TestTruncation:
    def test_name_and_city_budgets(self, individual_config):
        config = replace(individual_config, merchant_name="A" * 40, merchant_city="B" * 20)
        fields = decode_tlv(assemble(config).payload)
        assert fields["59"] == "A" * 25
        assert fields["60"] == "B" * 15

    def test_multibyte_name(self, individual_config):
        config = replace(individual_config, merchant_name="ក" * 10)
        fields = decode_tlv(assemble(config).payload)
        assert fields["59"] == "ក" * 8

    def test_upi_budget(self, individual_config):
        config = replace(individual_config, upi_account_information="9" * 40)
        assert decode_tlv(assemble(config).payload)["15"] == "9" * 31


class TestVerifyCrc:
    def test_round_trip(self, individual_config, merchant_config):
        assert verify_crc(assemble(individual_config).payload)
        assert verify_crc(assemble(merchant_config).payload)

    def test_lowercase_checksum_accepted(self, individual_config):
        payload = assemble(individual_config).payload
        assert verify_crc(payload[:-4] + payload[-4:].lower())

    def test_single_character_tamper_detected(self, merchant_config):
        payload = assemble(merchant_config, timestamp=FIXED_TS).payload
        for idx in range(len(payload) - 8):
            replacement = "1" if payload[idx] == "0" else "0"
            tampered = payload[:idx] + replacement + payload[idx + 1 :]
            assert not verify_crc(tampered), idx

    def test_wrong_checksum(self, individual_config):
        payload = assemble(individual_config).payload
        bad = "0000" if payload[-4:] != "0000" else "FFFF"
        assert not verify_crc(payload[:-4] + bad)

    def test_crc_prefix_inside_free_text(self, individual_config):
        payload = assemble(replace(individual_config, merchant_name="Shop 6304", bill_number="6304")).payload
        assert verify_crc(payload)

    @pytest.mark.parametrize("payload", ["", "000201", "6304", "63041AB", "0002016304ZZZZ"])
    def test_malformed_is_false(self, payload):
        assert not verify_crc(payload)
