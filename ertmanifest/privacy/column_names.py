from __future__ import annotations

from dataclasses import dataclass

from ertmanifest.privacy.normalize import normalize_column_name
from ertmanifest.privacy.policy import ColumnClassification


# Tokens whose presence in a header blocks value export outright. Grouped by
# what they identify; each group mixes English, French (Quebec) and
# Portuguese (Brazil) spellings, stored without accents.
_PHI_TOKENS: dict[str, tuple[str, ...]] = {
    "person_name": (
        "name", "patient", "subject", "subj", "first_name", "last_name",
        "fname", "lname", "surname", "given_name", "initials",
        "nom", "nom_famille", "prenom",
        "nome", "nome_paciente", "sobrenome",
    ),
    "record_number": (
        "mrn", "medical_record", "chart", "chart_number", "prontuario",
    ),
    "government_id": (
        "ssn", "social_security", "sin", "phn", "ohip", "ahcip", "msp",
        "healthcard", "health_card", "care_card",
        "nas", "nam", "numero_assurance_maladie", "ramq",
        "cpf", "rg", "sus", "cartao_sus", "cns",
    ),
    "event_date": (
        "dob", "birth", "birthday", "date_of_birth", "admission_date",
        "discharge_date", "death_date", "date_of_death", "dod",
        "naissance", "date_naissance", "ddn",
        "nascimento", "data_nascimento", "dt_nasc", "dn",
    ),
    "address": (
        "address", "street", "city", "zip", "postal",
        "adresse",
        "endereco", "municipio", "cidade", "cep", "uf",
    ),
    "contact": (
        "phone", "email", "contact", "fax",
        "courriel", "telephone", "tel",
        "telefone", "fone", "cel", "celular",
        "kin", "next_of_kin", "emergency_contact", "guarantor",
    ),
    "family": ("mae", "nome_mae", "pai", "nome_pai"),
    "provider": (
        "provider", "physician", "nurse", "doctor", "attending", "resident",
        "medecin", "md", "infirmier", "infirmiere",
        "medico", "enfermeiro", "enfermeira",
    ),
    "health_plan": (
        "insurance", "policy", "policy_number", "beneficiary", "member_id",
        "subscriber", "group_number", "plan_id",
    ),
    "account": ("account", "acct", "account_number", "billing"),
    "license": (
        "license", "license_number", "certificate", "cert_number", "credential",
    ),
    "vehicle": ("vin", "vehicle", "license_plate", "plate_number"),
    "device": (
        "serial", "serial_number", "device_id", "imei", "udid", "mac_address",
    ),
    "web": (
        "url", "website", "web_address", "homepage",
        "ip_address", "ipv4", "ipv6",
    ),
    "biometric": (
        "fingerprint", "biometric", "voiceprint", "retina", "iris_scan", "face_id",
        "photo", "photograph", "picture", "headshot", "face_image", "portrait",
    ),
}

# Abbreviations that only count at the edge of a header (pt_name, record_pt).
_PHI_PREFIXES: tuple[str, ...] = ("pt_",)
_PHI_SUFFIXES: tuple[str, ...] = ("_pt",)

_RECODE_TOKENS: tuple[str, ...] = (
    "site", "hospital", "clinic", "facility", "center", "location",
    "hopital", "clinique", "centre", "etablissement",
)

_WARNING_TOKENS: tuple[str, ...] = (
    "id", "identifier", "code", "number", "encounter", "visit", "admission", "case",
)

PHI_TOKENS: tuple[str, ...] = tuple(
    token for group in _PHI_TOKENS.values() for token in group
)

# Every token the policy can report; notices in the manifest may only cite these.
KNOWN_TOKENS: frozenset[str] = frozenset(
    PHI_TOKENS + _PHI_PREFIXES + _PHI_SUFFIXES + _RECODE_TOKENS + _WARNING_TOKENS
)

# PHI tokens at least this long also match inside run-together headers
# ("patientname"); shorter ones would hit ordinary words.
_SUBSTRING_MIN_LEN = 5

_RECODE_PREFIXES: tuple[tuple[str, str], ...] = (
    ("hospital", "Hospital"),
    ("hopital", "Hospital"),
    ("clinic", "Clinic"),
    ("clinique", "Clinic"),
    ("facility", "Facility"),
    ("etablissement", "Facility"),
    ("center", "Center"),
    ("centre", "Center"),
    ("location", "Location"),
)


@dataclass(frozen=True)
class ColumnNameResult:
    """Outcome of checking one header against the pattern dictionaries."""
    classification: ColumnClassification
    matched_pattern: str | None = None

    @property
    def is_phi(self) -> bool:
        return self.classification is ColumnClassification.PHI


def _token_match(normalized: str, token: str) -> bool:
    if normalized == token:
        return True
    if token in normalized.split("_"):
        return True
    return (
        normalized.startswith(f"{token}_")
        or normalized.endswith(f"_{token}")
        or f"_{token}_" in normalized
    )


class ColumnNamePolicy:
    """Classify column headers as PHI, recode, warning or safe.

    Matching is case- and accent-insensitive and runs in priority order
    PHI > Recode > Warning > Safe; the first tier with a hit decides.
    The dictionaries are module-level constants shared read-only by every
    column.
    """

    def classify(self, column_name: str) -> ColumnNameResult:
        normalized = normalize_column_name(column_name)

        for prefix in _PHI_PREFIXES:
            if normalized.startswith(prefix):
                return ColumnNameResult(ColumnClassification.PHI, prefix)
        for suffix in _PHI_SUFFIXES:
            if normalized.endswith(suffix):
                return ColumnNameResult(ColumnClassification.PHI, suffix)
        for token in PHI_TOKENS:
            if _token_match(normalized, token):
                return ColumnNameResult(ColumnClassification.PHI, token)
        compact = normalized.replace("_", "")
        for token in PHI_TOKENS:
            if len(token) >= _SUBSTRING_MIN_LEN and token.replace("_", "") in compact:
                return ColumnNameResult(ColumnClassification.PHI, token)

        for token in _RECODE_TOKENS:
            if _token_match(normalized, token):
                return ColumnNameResult(ColumnClassification.RECODE, token)

        for token in _WARNING_TOKENS:
            if _token_match(normalized, token):
                return ColumnNameResult(ColumnClassification.WARNING, token)

        return ColumnNameResult(ColumnClassification.SAFE)

    @staticmethod
    def recode_prefix(column_name: str) -> str:
        """Label prefix for a recoded column: ``Hospital``, ``Clinic``, ... or ``Site``."""
        normalized = normalize_column_name(column_name)
        for token, prefix in _RECODE_PREFIXES:
            if token in normalized:
                return prefix
        return "Site"
