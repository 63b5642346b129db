"""
Pytest Configuration and Shared Fixtures

Global fixtures for the ert-manifest test suite.
"""

import pytest

from ertmanifest.privacy.guard import SafeValueGuard
from ertmanifest.privacy.phi_detector import ValuePhiSniffer
from ertmanifest.privacy.policy import STRICT_K, PrivacyConfig
from ertmanifest.privacy.suppression import SuppressionEngine
from ertmanifest.profiling.cells import classify_cell
from ertmanifest.profiling.column import Column


@pytest.fixture
def default_config():
    return PrivacyConfig()


@pytest.fixture
def strict_config():
    return PrivacyConfig(k=STRICT_K)


@pytest.fixture
def relaxed_config():
    """Everything relaxed mode allows: k=1, exact counts and exact median."""
    return PrivacyConfig(
        k=1, relaxed=True, exact_counts=True, bucket_counts=False, exact_median=True,
    )


@pytest.fixture
def sniffer():
    return ValuePhiSniffer()


@pytest.fixture
def guard(default_config, sniffer):
    return SafeValueGuard(default_config, sniffer)


@pytest.fixture
def suppression_engine(sniffer):
    return SuppressionEngine(sniffer)


@pytest.fixture
def make_profile(default_config):
    """Build a finalized column profile from raw tokens."""
    def _make(name, values, config=None, index=0):
        column = Column(index, name, config or default_config)
        for raw in values:
            column.observe(classify_cell(raw))
        return column.finalize()
    return _make


@pytest.fixture
def write_table(tmp_path):
    """Write rows to a delimited file under tmp_path and return its path."""
    def _write(filename, headers, rows, sep=","):
        path = tmp_path / filename
        lines = [sep.join(headers)] + [sep.join(str(c) for c in row) for row in rows]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path
    return _write
