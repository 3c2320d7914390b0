from khqr.crc import crc16_ccitt


class TestCrc16Ccitt:
    def test_reference_vector(self):
        assert crc16_ccitt("123456789") == "29B1"

    def test_bytes_and_text_agree(self):
        assert crc16_ccitt(b"123456789") == crc16_ccitt("123456789")

    def test_empty_input_is_init_value(self):
        assert crc16_ccitt("") == "FFFF"

    def test_uppercase_four_digits(self):
        result = crc16_ccitt("test")
        assert len(result) == 4
        assert result == result.upper()

    def test_text_is_utf8_encoded(self):
        assert crc16_ccitt("ក") == crc16_ccitt("ក".encode("utf-8"))

    def test_no_state_between_calls(self):
        first = crc16_ccitt("000201")
        crc16_ccitt("something else")
        assert crc16_ccitt("000201") == first
