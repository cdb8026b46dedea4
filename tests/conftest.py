"""
Shared fixtures: an in-memory customer store that records every query.
"""

import pytest

from customer_dedup.services.duplicate_detection import CandidateRecord, CustomerStore


class FakeCustomerStore(CustomerStore):
    """
    In-memory CustomerStore test double.

    calls records (method, field, argument) for every query; failing_fields
    makes queries on those fields raise like a broken database would.
    """

    def __init__(self, records=None, failing_fields=()):
        self.records = list(records or [])
        self.failing_fields = set(failing_fields)
        self.calls = []

    def _check(self, method, field, argument):
        self.calls.append((method, field, argument))
        if field in self.failing_fields:
            raise ConnectionError(f"store unavailable for {field}")

    def query_by_exact_field(self, field, value, case_insensitive=False):
        self._check("exact", field, value)
        if case_insensitive:
            return [r for r in self.records if getattr(r, field).lower() == value.lower()]
        return [r for r in self.records if getattr(r, field) == value]

    def query_by_substring(self, field, pattern):
        self._check("substring", field, pattern)
        return [r for r in self.records if pattern.lower() in getattr(r, field).lower()]

    def query_by_substrings(self, field, patterns):
        self._check("substrings", field, tuple(patterns))
        return [
            r for r in self.records
            if all(p.lower() in getattr(r, field).lower() for p in patterns)
        ]

    def query_by_subsequence(self, field, characters):
        self._check("subsequence", field, characters)
        matches = []
        for r in self.records:
            remaining = iter(getattr(r, field).lower())
            if all(char in remaining for char in characters.lower()):
                matches.append(r)
        return matches


def make_record(record_id, company_name="", phone="", tax_id="", **display):
    return CandidateRecord(
        id=record_id,
        company_name=company_name,
        phone=phone,
        tax_id=tax_id,
        **display
    )


@pytest.fixture
def alpha_record():
    return make_record(
        "c-1",
        company_name="Alpha Services",
        phone="2101234567",
        tax_id="12345678",
        address="Ermou 1",
        town="Athens",
        postal_code="10563",
        email="info@alpha.gr",
    )


@pytest.fixture
def registry_records(alpha_record):
    """A small registry with overlapping names and phones."""
    return [
        alpha_record,
        make_record("c-2", company_name="Alpha Logistics", phone="2109876543", tax_id="87654321"),
        make_record("c-3", company_name="Beta Trading", phone="6912345678", tax_id="11112222"),
        make_record("c-4", company_name="Gamma Foods", phone="6983-50.50.43", tax_id="33334444"),
        make_record("c-5", company_name="Services Alpha", phone="2310555666", tax_id="55556666"),
    ]


@pytest.fixture
def fake_store(registry_records):
    return FakeCustomerStore(registry_records)
