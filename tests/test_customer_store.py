"""Tests for SqlCustomerStore against an in-memory SQLite registry."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from customer_dedup.database import Base
from customer_dedup.models import Customer
from customer_dedup.services.duplicate_detection import SqlCustomerStore
from customer_dedup.services.duplicate_detection.store import escape_like


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine)

    with factory() as session:
        session.add_all([
            Customer(id="c-1", company_name="Alpha Services", phone="2101234567",
                     tax_id="12345678", town="Athens"),
            Customer(id="c-2", company_name="Alpha Logistics", phone="2109876543", tax_id="87654321"),
            Customer(id="c-3", company_name="Gamma Foods", phone="6983-50.50.43", tax_id="33334444"),
            Customer(id="c-4", company_name="100% Organic", phone=None, tax_id=None),
            Customer(id="c-5", company_name="1000 Organic", phone=None, tax_id=None),
            Customer(id="c-6", company_name="Alpha Services", phone="2101234567", tax_id="12345678",
                     deleted_at=datetime(2024, 1, 1, tzinfo=timezone.utc)),
        ])
        session.commit()

    yield factory
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return SqlCustomerStore(session_factory)


def ids(records):
    return sorted(record.id for record in records)


class TestExactQueries:
    """Tests for query_by_exact_field."""

    def test_tax_id_exact(self, store):
        """Exact AFM lookup returns display fields too"""
        records = store.query_by_exact_field("tax_id", "12345678")

        assert ids(records) == ["c-1"]
        assert records[0].town == "Athens"

    def test_soft_deleted_rows_are_excluded(self, store):
        """Rows with deleted_at set are never returned"""
        assert "c-6" not in ids(store.query_by_exact_field("company_name", "Alpha Services"))

    def test_case_sensitive_by_default(self, store):
        """Exact lookups respect case unless asked not to"""
        assert store.query_by_exact_field("company_name", "alpha services") == []

    def test_case_insensitive(self, store):
        """Case-insensitive exact lookup matches any case"""
        records = store.query_by_exact_field("company_name", "alpha services", case_insensitive=True)
        assert ids(records) == ["c-1"]

    def test_null_columns_become_empty_strings(self, store):
        """NULL phone and AFM map to empty strings"""
        record = store.query_by_exact_field("company_name", "100% Organic")[0]
        assert record.phone == ""
        assert record.tax_id == ""

    def test_unknown_field_rejected(self, store):
        """Only company name, phone and AFM are searchable"""
        with pytest.raises(ValueError):
            store.query_by_exact_field("email", "info@alpha.gr")


class TestSubstringQueries:
    """Tests for substring and subsequence lookups."""

    def test_substring_is_case_insensitive(self, store):
        """Substring lookup ignores case"""
        assert ids(store.query_by_substring("company_name", "ALPHA")) == ["c-1", "c-2"]

    def test_phone_substring(self, store):
        """Phone digits match anywhere in the stored number"""
        assert ids(store.query_by_substring("phone", "1234")) == ["c-1"]

    def test_wildcards_are_literal(self, store):
        """LIKE wildcards in input are matched literally"""
        assert ids(store.query_by_substring("company_name", "0%")) == ["c-4"]

    def test_all_substrings_must_match(self, store):
        """Every pattern must be contained"""
        records = store.query_by_substrings("company_name", ["alpha", "serv"])
        assert ids(records) == ["c-1"]

    def test_empty_substrings_query_nothing(self, store):
        """No patterns returns [] instead of the whole table"""
        assert store.query_by_substrings("company_name", []) == []

    def test_subsequence_skips_separators(self, store):
        """Digits match across separators in stored phones"""
        assert ids(store.query_by_subsequence("phone", "6983505043")) == ["c-3"]

    def test_empty_subsequence_queries_nothing(self, store):
        """Empty subsequence returns []"""
        assert store.query_by_subsequence("phone", "") == []

    def test_limit(self, session_factory):
        """Row cap applies per query"""
        limited = SqlCustomerStore(session_factory, limit=1)
        assert len(limited.query_by_substring("company_name", "alpha")) == 1


class TestEscapeLike:

    def test_escapes_wildcards_and_backslash(self):
        """Percent, underscore and backslash are escaped"""
        assert escape_like("a_b%c\\d") == "a\\_b\\%c\\\\d"

    def test_plain_text_untouched(self):
        """Text without wildcards is unchanged"""
        assert escape_like("Alpha 21") == "Alpha 21"
