"""
Tests for text utility functions.

Covers null-string normalisation, dependency name cleanup, color-code
translation and trace trimming. Uses property-based testing where the
behaviour should hold for arbitrary input.
"""

import pytest
from hypothesis import given, strategies as st

from compound.utils.text import (
    SECTION_SIGN,
    clean_name_list,
    format_trace,
    normalize_null_strings,
    translate_color_codes,
)


class TestNormalizeNullStrings:

    def test_null_string_variants(self):
        assert normalize_null_strings("null") is None
        assert normalize_null_strings("NULL") is None
        assert normalize_null_strings("Null") is None

    def test_nested_structures(self):
        data = {"a": ["null", {"b": "NULL"}], "c": "value"}
        assert normalize_null_strings(data) == {"a": [None, {"b": None}], "c": "value"}

    @given(st.text().filter(lambda s: s.lower() != "null"))
    def test_other_strings_preserved(self, text):
        assert normalize_null_strings(text) == text


class TestCleanNameList:

    def test_drops_blanks_and_nulls(self):
        assert clean_name_list(["a", " b ", "", None, "null", "None"]) == ["a", "b"]

    def test_single_string(self):
        assert clean_name_list("storage") == ["storage"]

    def test_none(self):
        assert clean_name_list(None) == []

    def test_order_preserved(self):
        assert clean_name_list(("z", "a", "m")) == ["z", "a", "m"]


class TestTranslateColorCodes:

    def test_basic_translation(self):
        assert translate_color_codes("&cHello") == f"{SECTION_SIGN}cHello"

    def test_code_is_lowercased(self):
        assert translate_color_codes("&CHi &LBold") == f"{SECTION_SIGN}cHi {SECTION_SIGN}lBold"

    def test_unknown_code_untouched(self):
        assert translate_color_codes("Tom &zJerry") == "Tom &zJerry"

    def test_trailing_alt_char_untouched(self):
        assert translate_color_codes("fish &") == "fish &"

    def test_custom_alt_char(self):
        assert translate_color_codes("#aGreen &aPlain", "#") == f"{SECTION_SIGN}aGreen &aPlain"

    def test_empty(self):
        assert translate_color_codes("") == ""

    @given(st.text(alphabet=st.characters(exclude_characters="&")))
    def test_text_without_alt_char_is_unchanged(self, text):
        assert translate_color_codes(text) == text

    @given(st.text())
    def test_length_is_preserved(self, text):
        assert len(translate_color_codes(text)) == len(text)


class TestFormatTrace:

    def test_given_exception(self):
        try:
            raise ValueError("boom")
        except ValueError as e:
            trace = format_trace(e)
        assert "ValueError: boom" in trace
        assert "Traceback" in trace

    def test_active_exception(self):
        try:
            raise KeyError("missing")
        except KeyError:
            trace = format_trace()
        assert "KeyError" in trace

    def test_trimmed_to_tail(self):
        try:
            raise RuntimeError("x" * 10000 + "END")
        except RuntimeError as e:
            trace = format_trace(e)
        assert len(trace) == 4000
        assert trace.rstrip().endswith("END")
