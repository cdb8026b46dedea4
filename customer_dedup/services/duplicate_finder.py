"""
Duplicate Finder

Public entry point of the duplicate detection engine: given the fields of a
customer about to be saved, return existing customers that may be the same
business, ranked by confidence, with the reasons they matched.

The finder is advisory. It never raises for search-time problems: blank
input, store failures and unexpected errors all end in an empty (or partial)
result so the caller's save path is never blocked. Whether to warn, merge or
block is the caller's decision.
"""

import uuid
from typing import List, Optional
import structlog

from customer_dedup.config import settings
from customer_dedup.services.duplicate_detection import (
    CandidateRecord,
    CandidateRetriever,
    CustomerStore,
    MatchReasons,
    ScoredCandidate,
    SearchInput,
    SqlCustomerStore,
    clean_search_input,
    combine_phone_name_scores,
    name_similarity,
    phone_containment_score,
    score_candidate,
)
from customer_dedup.services.duplicate_detection.normalizers import digits_only
from customer_dedup.services.duplicate_detection.scoring import SIGNIFICANCE_THRESHOLDS

logger = structlog.get_logger(__name__)


class DuplicateFinder:
    """
    Stateless duplicate search over a customer store.

    Holds only its store and retrieval settings; safe to share between threads
    and requests.

    Usage:
        finder = DuplicateFinder(SqlCustomerStore(SessionLocal))
        matches = finder.find_potential_duplicates(
            SearchInput(company_name="Alpha Services", phone="210 123 4567")
        )
        for match in matches:
            print(match.record.company_name, match.score, match.match_reasons)
    """

    def __init__(
        self,
        store: CustomerStore,
        retriever: Optional[CandidateRetriever] = None,
        restrict_to_tax_id: Optional[bool] = None
    ):
        """
        Args:
            store: Customer store to search
            retriever: Retriever over the same store (default: built from settings)
            restrict_to_tax_id: Drop candidates whose AFM differs from a complete
                input AFM (default: settings.duplicate_restrict_to_tax_id)
        """
        self.store = store
        self.retriever = retriever or CandidateRetriever(store)
        if restrict_to_tax_id is None:
            restrict_to_tax_id = settings.duplicate_restrict_to_tax_id
        self.restrict_to_tax_id = restrict_to_tax_id

    def find_potential_duplicates(
        self,
        search_input: SearchInput,
        threshold: Optional[int] = None
    ) -> List[ScoredCandidate]:
        """
        Find existing customers that may duplicate search_input.

        Args:
            search_input: Company name, phone and AFM of the record being saved
            threshold: Minimum combined score (default: settings.duplicate_default_threshold)

        Returns:
            Scored candidates with score >= threshold, highest first; ties keep
            retrieval order
        """
        if threshold is None:
            threshold = settings.duplicate_default_threshold

        if search_input is None or search_input.is_blank:
            logger.debug("duplicate_search_skipped_blank_input")
            return []

        log = logger.bind(
            search_id=uuid.uuid4().hex[:12],
            has_company_name=search_input.has_company_name,
            phone_digits=len(digits_only(search_input.phone)),
            tax_id_digits=len(digits_only(search_input.tax_id)),
        )

        try:
            cleaned = clean_search_input(search_input)
            candidates = self.retriever.retrieve(cleaned, log=log)

            if not candidates:
                log.info("no_candidates_found")
                return []

            candidates = self._restrict_to_tax_id(cleaned, candidates, log)

            scored = [score_candidate(cleaned, record) for record in candidates]
            results = [candidate for candidate in scored if candidate.score >= threshold]
            # list.sort is stable: equal scores keep retrieval order
            results.sort(key=lambda candidate: candidate.score, reverse=True)

            log.info("duplicate_search_completed",
                     candidates=len(candidates),
                     matches=len(results),
                     threshold=threshold,
                     top_score=results[0].score if results else None)
            return results

        except Exception:
            log.error("duplicate_search_failed", exc_info=True)
            return []

    def find_by_phone_with_name_boost(
        self,
        phone: str,
        company_name: Optional[str] = None
    ) -> List[ScoredCandidate]:
        """
        Look customers up by phone only, using the name to rank them.

        Every record whose phone contains the typed digits (directly or with
        separators in between) is returned; nothing is filtered by score. Any
        non-empty digit string is looked up, however short.

        Args:
            phone: Phone number as typed, any formatting
            company_name: Optional company name that boosts corroborated matches

        Returns:
            Scored candidates, highest first
        """
        digits = digits_only(phone)
        if not digits:
            logger.debug("phone_lookup_skipped_no_digits")
            return []

        has_name = bool(company_name and company_name.strip())
        log = logger.bind(
            search_id=uuid.uuid4().hex[:12],
            phone_digits=len(digits),
            has_company_name=has_name,
        )

        try:
            records = self._phone_lookup_candidates(digits, log)
            if not records:
                log.info("no_candidates_found")
                return []

            scored = []
            for record in records:
                phone_score = phone_containment_score(digits, record.phone)
                name_score = name_similarity(company_name, record.company_name) if has_name else 0
                score, rule = combine_phone_name_scores(phone_score, name_score, has_name)
                scored.append(ScoredCandidate(
                    record=record,
                    score=score,
                    # Strictly above the significance threshold on this path
                    match_reasons=MatchReasons(
                        company_name=name_score > SIGNIFICANCE_THRESHOLDS["company_name"],
                        phone=True,
                        tax_id=False,
                    ),
                    component_scores={"company_name": name_score, "phone": phone_score, "tax_id": 0},
                    rule=rule,
                ))

            scored.sort(key=lambda candidate: candidate.score, reverse=True)
            log.info("phone_lookup_completed",
                     candidates=len(scored),
                     top_score=scored[0].score)
            return scored

        except Exception:
            log.error("phone_lookup_failed", exc_info=True)
            return []

    def _phone_lookup_candidates(self, digits: str, log) -> List[CandidateRecord]:
        # Substring catches bare digits, subsequence catches "6983-50.50.43"
        records = {}
        for record in self.store.query_by_substring("phone", digits):
            records.setdefault(record.id, record)
        for record in self.store.query_by_subsequence("phone", digits):
            records.setdefault(record.id, record)

        log.debug("phone_lookup_candidates", count=len(records))
        return sorted(records.values(), key=lambda record: record.company_name.casefold())

    def _restrict_to_tax_id(
        self,
        cleaned: SearchInput,
        candidates: List[CandidateRecord],
        log
    ) -> List[CandidateRecord]:
        if not self.restrict_to_tax_id or len(cleaned.tax_id) != self.retriever.tax_id_length:
            return candidates

        kept = [record for record in candidates if digits_only(record.tax_id) == cleaned.tax_id]
        log.debug("candidates_restricted_to_tax_id", before=len(candidates), after=len(kept))
        return kept


_default_finder: Optional[DuplicateFinder] = None


def get_duplicate_finder() -> DuplicateFinder:
    """
    Shared finder over the configured registry database.

    Raises:
        RuntimeError: if DATABASE_URL is not configured
    """
    global _default_finder
    if _default_finder is None:
        from customer_dedup.database import get_session_factory

        _default_finder = DuplicateFinder(SqlCustomerStore(get_session_factory()))
    return _default_finder


def find_potential_duplicates(
    search_input: SearchInput,
    threshold: Optional[int] = None,
    finder: Optional[DuplicateFinder] = None
) -> List[ScoredCandidate]:
    """Module-level shortcut for DuplicateFinder.find_potential_duplicates."""
    if search_input is None or search_input.is_blank:
        return []
    finder = finder or get_duplicate_finder()
    return finder.find_potential_duplicates(search_input, threshold)


def find_by_phone_with_name_boost(
    phone: str,
    company_name: Optional[str] = None,
    finder: Optional[DuplicateFinder] = None
) -> List[ScoredCandidate]:
    """Module-level shortcut for DuplicateFinder.find_by_phone_with_name_boost."""
    finder = finder or get_duplicate_finder()
    return finder.find_by_phone_with_name_boost(phone, company_name)


__all__ = [
    "DuplicateFinder",
    "get_duplicate_finder",
    "find_potential_duplicates",
    "find_by_phone_with_name_boost",
]
