"""Tests for the ordered column suppression rules."""
import pytest

from ertmanifest.privacy.policy import STRICT_K, ColumnClassification, PrivacyConfig
from ertmanifest.privacy.suppression import SuppressionReason
from ertmanifest.profiling.inference import TypeState


def repeat(values, times):
    return [v for v in values for _ in range(times)]


class TestSuppressionReason:
    def test_render(self):
        assert SuppressionReason.NO_VALUES.render() == "no values"
        assert SuppressionReason.TYPE_NOT_EXPORTABLE.render(TypeState.DATE) == "type not exportable: date"


class TestSuppressionEngine:
    def test_safe_categorical_exported(self, make_profile, suppression_engine, default_config):
        profile = make_profile("severity", repeat(["mild", "moderate", "severe"], 6))
        decision = suppression_engine.decide(profile, default_config)
        assert decision.exported
        assert decision.reason is None
        assert decision.classification is ColumnClassification.SAFE
        assert [c.text for c in decision.cleared_values] == ["mild", "moderate", "severe"]

    def test_boolean_column_exported(self, make_profile, suppression_engine, default_config):
        profile = make_profile("treatment", repeat(["0", "1"], 500))
        decision = suppression_engine.decide(profile, default_config)
        assert profile.dtype is TypeState.BOOLEAN
        assert decision.exported

    def test_phi_name_first(self, make_profile, suppression_engine):
        config = PrivacyConfig(k=STRICT_K)
        profile = make_profile("operator_name", repeat(list("abcde"), 20), config)
        decision = suppression_engine.decide(profile, config)
        assert not decision.exported
        assert decision.reason == "column name PHI match"
        assert decision.classification is ColumnClassification.PHI
        assert decision.stats_suppressed

    def test_no_values(self, make_profile, suppression_engine, default_config):
        decision = suppression_engine.decide(make_profile("lab", ["", "NA"]), default_config)
        assert decision.reason == "no values"
        assert decision.stats_suppressed

    def test_date_type_not_exportable(self, make_profile, suppression_engine, default_config):
        profile = make_profile("visit_day", repeat(["2024-01-01", "2024-02-01"], 5))
        decision = suppression_engine.decide(profile, default_config)
        assert decision.reason == "type not exportable: date"
        assert not decision.stats_suppressed

    def test_free_text(self, make_profile, suppression_engine, default_config):
        profile = make_profile("comments", repeat(["this is a long sentence " * 3], 6))
        decision = suppression_engine.decide(profile, default_config)
        assert decision.reason == "type not exportable: free_text"
        assert decision.classification is ColumnClassification.FREE_TEXT

    def test_n_rows_below_k(self, make_profile, suppression_engine):
        config = PrivacyConfig(k=STRICT_K)
        profile = make_profile("height", [str(150 + i) for i in range(15)], config)
        decision = suppression_engine.decide(profile, config)
        assert decision.reason == "n_rows below k"
        assert decision.stats_suppressed
        assert decision.stats_reason == "n_rows below k"

    def test_high_cardinality(self, make_profile, suppression_engine, default_config):
        profile = make_profile("age", [str(20 + i % 40) for i in range(400)])
        decision = suppression_engine.decide(profile, default_config)
        assert decision.reason == "high cardinality"
        assert decision.classification is ColumnClassification.HIGH_CARDINALITY
        assert not decision.stats_suppressed

    def test_value_count_below_k(self, make_profile, suppression_engine, default_config):
        profile = make_profile("severity", repeat(["mild", "moderate"], 6) + ["severe"])
        decision = suppression_engine.decide(profile, default_config)
        assert decision.reason == "value count below k"
        assert decision.cleared_values == ()

    def test_k_changes_outcome(self, make_profile, suppression_engine, default_config, strict_config):
        values = repeat(["mild", "moderate", "severe"], 8)
        assert suppression_engine.decide(make_profile("severity", values), default_config).exported
        strict = suppression_engine.decide(make_profile("severity", values, strict_config), strict_config)
        assert strict.reason == "value count below k"

    def test_not_code_like(self, make_profile, suppression_engine, default_config):
        profile = make_profile("rating", repeat(["very good", "not good"], 5))
        decision = suppression_engine.decide(profile, default_config)
        assert decision.reason == "values not code-like"

    def test_words_blocked_by_identifying_name(self, make_profile, suppression_engine, default_config):
        profile = make_profile("username", repeat(["alpha", "bravo", "charlie"], 5))
        decision = suppression_engine.decide(profile, default_config)
        assert decision.reason == "word values in identifying column"

    def test_mixed_letters_and_digits(self, make_profile, suppression_engine, default_config):
        profile = make_profile("grade_code", repeat(["A1", "B2", "1", "2", "3"], 5))
        decision = suppression_engine.decide(profile, default_config)
        assert decision.reason == "mixed letter and digit values"
        assert decision.classification is ColumnClassification.WARNING

    def test_numeric_codes_exported(self, make_profile, suppression_engine, default_config):
        profile = make_profile("ward_code", repeat(["10-2", "10-3", "11-1"], 5))
        decision = suppression_engine.decide(profile, default_config)
        assert decision.exported
        assert decision.classification is ColumnClassification.WARNING

    def test_string_too_long(self, make_profile, suppression_engine, default_config):
        profile = make_profile("unit", repeat(["x" * 40, "y" * 40], 5))
        decision = suppression_engine.decide(profile, default_config)
        assert decision.reason == "string too long"

    def test_value_phi_pattern_escalates(self, make_profile, suppression_engine, default_config):
        values = repeat([str(100 + i) for i in range(4)], 25) + ["jdoe@example.com"] * 5
        profile = make_profile("misc_code", values)
        decision = suppression_engine.decide(profile, default_config)
        assert profile.dtype is TypeState.INTEGER
        assert decision.reason == "value PHI pattern: email"
        assert decision.classification is ColumnClassification.PHI

    def test_person_names_caught_by_sniffer(self, make_profile, suppression_engine, default_config):
        profile = make_profile("last_seen_by", repeat(["Tremblay", "Silva", "Cote"], 5))
        decision = suppression_engine.decide(profile, default_config)
        assert decision.reason == "value PHI pattern: person_name"
        assert decision.classification is ColumnClassification.PHI

    def test_recoded_labels_exported(self, make_profile, suppression_engine, default_config):
        profile = make_profile(
            "site_code", repeat(["Vancouver General", "St. Paul's", "Royal Columbian"], 5)
        )
        decision = suppression_engine.decide(profile, default_config)
        assert profile.recoded
        assert decision.exported
        assert decision.classification is ColumnClassification.RECODE
        assert [c.text for c in decision.cleared_values] == ["Site_A", "Site_B", "Site_C"]

    def test_relaxed_never_exports_phi_names(self, make_profile, suppression_engine, relaxed_config):
        profile = make_profile("email", repeat(["a", "b"], 5), relaxed_config)
        decision = suppression_engine.decide(profile, relaxed_config)
        assert not decision.exported
        assert decision.reason == "column name PHI match"


@pytest.mark.parametrize("k", [5, 20])
def test_every_non_exported_column_has_a_reason(make_profile, suppression_engine, k):
    config = PrivacyConfig(k=k)
    columns = {
        "patient_name": ["Tremblay"] * 30,
        "age": [str(i) for i in range(30)],
        "severity": ["mild"] * 30,
        "notes": ["x" * 60] * 30,
    }
    for name, values in columns.items():
        decision = suppression_engine.decide(make_profile(name, values, config), config)
        assert decision.exported or decision.reason
