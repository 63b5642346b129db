"""Tests for raw cell classification."""
from datetime import date, datetime

import numpy as np
import pytest

from ertmanifest.profiling.cells import MISSING, CellKind, classify_cell


class TestClassifyCell:
    @pytest.mark.parametrize("raw", [
        "", "  ", "NA", "n/a", "NULL", "nan", ".", "-", "--", "Missing", "None",
        "#N/A", "#VALUE!", "#DIV/0!", None, float("nan"),
    ])
    def test_missing_tokens(self, raw):
        assert classify_cell(raw).is_missing

    def test_integer_token(self):
        cell = classify_cell(" 42 ")
        assert cell.kind is CellKind.INTEGER
        assert cell.value == 42
        assert cell.text == "42"

    def test_integer_beyond_64_bits_is_float(self):
        cell = classify_cell(str(2 ** 64))
        assert cell.kind is CellKind.FLOAT

    @pytest.mark.parametrize("raw,value", [("3.5", 3.5), ("-.5", -0.5), ("1e3", 1000.0)])
    def test_float_tokens(self, raw, value):
        cell = classify_cell(raw)
        assert cell.kind is CellKind.FLOAT
        assert cell.value == value

    def test_text_token(self):
        cell = classify_cell("E11.9")
        assert cell.kind is CellKind.TEXT
        assert cell.text == "E11.9"

    def test_native_types(self):
        assert classify_cell(True).kind is CellKind.BOOLEAN
        assert classify_cell(7).kind is CellKind.INTEGER
        assert classify_cell(2.5).kind is CellKind.FLOAT
        assert classify_cell(np.int64(3)).value == 3
        assert classify_cell(date(2024, 1, 15)).text == "2024-01-15"
        assert classify_cell(datetime(2024, 1, 15, 8, 30)).text == "2024-01-15T08:30:00"

    def test_infinity_is_text(self):
        assert classify_cell(float("inf")).kind is CellKind.TEXT

    @pytest.mark.parametrize("raw", ["1e400", "-1e400", "1" + "0" * 400])
    def test_out_of_range_number_is_text(self, raw):
        cell = classify_cell(raw)
        assert cell.kind is CellKind.TEXT
        assert cell.text == raw

    def test_same_number_spelled_differently_is_equal(self):
        assert classify_cell("07") == classify_cell("7")
        assert hash(classify_cell("+7")) == hash(classify_cell("7"))
        assert classify_cell("1.0") == classify_cell("1.00")
        assert classify_cell("07").text == "07"
        assert classify_cell("7") != classify_cell("7.0")
        assert classify_cell("abc") != classify_cell("ABC")

    def test_custom_missing_tokens(self):
        tokens = frozenset({"unk"})
        assert classify_cell("UNK", tokens) is MISSING
        assert not classify_cell("NA", tokens).is_missing
