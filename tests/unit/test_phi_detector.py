"""Tests for the value PHI sniffer."""
import pytest

from ertmanifest.privacy.phi_detector import PatternKind, ValuePhiSniffer


class TestValuePhiSniffer:
    @pytest.mark.parametrize("value,kind", [
        ("jdoe@example.com", PatternKind.EMAIL),
        ("(604) 555-0199", PatternKind.PHONE),
        ("604-555-0199", PatternKind.PHONE),
        ("+55 11 9876 5432", PatternKind.PHONE),
        ("123-45-6789", PatternKind.SSN),
        ("90210", PatternKind.ZIP),
        ("90210-1234", PatternKind.ZIP),
        ("V6T 1Z4", PatternKind.POSTAL_CODE),
        ("h3a2b4", PatternKind.POSTAL_CODE),
        ("192.168.0.12", PatternKind.IP_ADDRESS),
        ("https://example.org/x", PatternKind.URL),
        ("www.clinic.ca", PatternKind.URL),
        ("00:1A:2B:3C:4D:5E", PatternKind.MAC_ADDRESS),
        ("AB12CD34EF56", PatternKind.LONG_ID),
        ("Tremblay", PatternKind.PERSON_NAME),
        ("Maria Silva", PatternKind.PERSON_NAME),
    ])
    def test_match(self, sniffer, value, kind):
        assert sniffer.match(value) is kind

    @pytest.mark.parametrize("value", ["mild", "E11.9", "42", "yes", "ICU", "2-5"])
    def test_no_match(self, sniffer, value):
        assert sniffer.match(value) is None

    def test_accent_insensitive_names(self, sniffer):
        assert sniffer.is_person_name("CÔTÉ")
        assert sniffer.is_person_name("Cote")
        assert sniffer.is_person_name("côté")

    def test_include_names_false_skips_dictionary(self, sniffer):
        assert sniffer.match("Tremblay", include_names=False) is None

    def test_skip_excludes_kinds(self, sniffer):
        assert sniffer.match("Week12Score") is PatternKind.LONG_ID
        assert sniffer.match("Week12Score", skip=(PatternKind.LONG_ID,)) is None
        assert sniffer.match("jdoe@example.com", skip=(PatternKind.LONG_ID,)) is PatternKind.EMAIL

    def test_scan_reports_highest_priority(self, sniffer):
        values = ["Tremblay", "1", "jdoe@example.com"]
        assert sniffer.scan(values) is PatternKind.EMAIL

    def test_scan_clean_values(self, sniffer):
        assert sniffer.scan(["mild", "moderate", "severe"]) is None

    def test_scan_ignores_blank(self, sniffer):
        assert sniffer.scan(["", "   "]) is None

    def test_custom_dictionary(self):
        sniffer = ValuePhiSniffer(names=frozenset({"zorblax"}))
        assert sniffer.match("Zorblax") is PatternKind.PERSON_NAME
        assert sniffer.match("Tremblay") is None
