import pytest

from clipbox.exceptions import InvalidEntryIdError
from clipbox.hidden_id import DELIMITER, decode_hidden, encode_hidden, extract_id


class TestEncodeHidden:
    def test_exact_code_points(self):
        assert encode_hidden(105) == "\u200b\ufe01\ufe00\ufe05\u200b"

    def test_one_code_point_per_digit(self):
        assert len(encode_hidden(123456)) == 6 + 2

    def test_is_invisible(self):
        assert not any(ch.isalnum() for ch in encode_hidden(42))


class TestDecodeHidden:
    @pytest.mark.parametrize("entry_id", [1, 9, 10, 42, 1000, 987654321])
    def test_recovers_id(self, entry_id):
        assert decode_hidden(encode_hidden(entry_id)) == entry_id

    def test_embedded_in_row_text(self):
        row = f" some preview text{encode_hidden(77)}"
        assert decode_hidden(row) == 77

    def test_first_pair_wins(self):
        assert decode_hidden(encode_hidden(5) + encode_hidden(6)) == 5

    def test_no_delimiter(self):
        assert decode_hidden("plain text") is None

    def test_unclosed_delimiter(self):
        assert decode_hidden(f"{DELIMITER}\ufe01\ufe02") is None

    def test_no_digits_between_delimiters(self):
        assert decode_hidden(f"{DELIMITER}abc{DELIMITER}") is None

    def test_zero_is_not_an_id(self):
        assert decode_hidden(encode_hidden(0)) is None

    def test_foreign_characters_are_skipped(self):
        assert decode_hidden(f"{DELIMITER}\ufe04x\ufe02{DELIMITER}") == 42


class TestExtractId:
    def test_side_channel_preferred(self):
        assert extract_id(f"row{encode_hidden(3)}", "17") == 17

    def test_falls_back_to_hidden_id(self):
        assert extract_id(f"row{encode_hidden(3)}", None) == 3

    @pytest.mark.parametrize("side_channel", ["", "0", "-4", "abc"])
    def test_invalid_side_channel_ignored(self, side_channel):
        assert extract_id(f"row{encode_hidden(8)}", side_channel) == 8

    def test_no_source_raises(self):
        with pytest.raises(InvalidEntryIdError):
            extract_id("row without id", None)

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            extract_id("", "0")
