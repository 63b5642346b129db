"""Tests for the per-column arena slot."""
import pytest

from ertmanifest.privacy.policy import ColumnClassification
from ertmanifest.profiling.cells import classify_cell
from ertmanifest.profiling.column import Column
from ertmanifest.profiling.inference import TypeState


class TestColumn:
    def test_profile(self, make_profile):
        profile = make_profile("age", ["30", "", "40", "50"], index=2)
        assert profile.index == 2
        assert profile.dtype is TypeState.INTEGER
        assert profile.non_missing_count == 3
        assert profile.missing_count == 1
        assert profile.unique_count == 3
        assert profile.stats.min == 30
        assert not profile.recoded

    def test_finalize_once(self, default_config):
        column = Column(0, "age", default_config)
        column.observe(classify_cell("1"))
        column.finalize()
        assert column.finalized
        with pytest.raises(RuntimeError):
            column.finalize()
        with pytest.raises(RuntimeError):
            column.observe(classify_cell("2"))

    def test_recoded_column_has_no_summary(self, make_profile):
        profile = make_profile("hospital", ["1", "2", "2"])
        assert profile.recoded
        assert profile.name_result.classification is ColumnClassification.RECODE
        assert profile.dtype is TypeState.INTEGER
        assert not profile.stats.has_summary
        assert [(c.text, n) for c, n in profile.tally] == [("Hospital_A", 1), ("Hospital_B", 2)]

    def test_recoder_labels_follow_row_order(self, default_config):
        column = Column(0, "site", default_config)
        for raw in ["Z", "X", "Z", "Y"]:
            column.observe(classify_cell(raw))
        assert column.recoder.items() == [("Site_A", "Z"), ("Site_B", "X"), ("Site_C", "Y")]

    def test_ambiguous_dates_flagged(self, make_profile):
        profile = make_profile("visit_day", ["03/04/2024", "05/06/2024"])
        assert profile.dtype is TypeState.STRING
        assert profile.ambiguous_dates
        assert profile.date_order is None
