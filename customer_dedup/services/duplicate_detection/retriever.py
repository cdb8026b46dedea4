"""
Candidate Retriever

Builds the candidate superset for a search with a handful of cheap, filtered
store queries, before any fuzzy scoring runs.

Retrieval policy:
- Phone-only fast path: when only the phone is usable, one phone substring
  query is enough.
- Otherwise up to three independent branches (exact AFM, phone substring,
  company name exact + tokenized substring), unioned by record id.
- Partial AFMs are never queried: a prefix of a tax ID matches far too many
  records to be useful.

A failing or timed-out branch is logged and contributes nothing, so a broken
AFM lookup never hides phone or name candidates.
"""

from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple
import structlog

from customer_dedup.config import settings
from customer_dedup.services.duplicate_detection.normalizers import digits_only
from customer_dedup.services.duplicate_detection.store import CustomerStore
from customer_dedup.services.duplicate_detection.types import CandidateRecord, SearchInput

logger = structlog.get_logger(__name__)

MIN_NAME_TOKEN_LENGTH = 2

Branch = Tuple[str, Callable[[], List[CandidateRecord]]]


@dataclass(frozen=True)
class RetrievalPlan:
    """Which fields of the cleaned input are worth querying."""
    use_company_name: bool
    use_phone: bool
    use_tax_id: bool

    @property
    def phone_only(self) -> bool:
        return self.use_phone and not self.use_company_name and not self.use_tax_id

    @property
    def is_empty(self) -> bool:
        return not (self.use_company_name or self.use_phone or self.use_tax_id)


def clean_search_input(search_input: SearchInput) -> SearchInput:
    """Trim the name and reduce phone and AFM to digits."""
    return SearchInput(
        company_name=(search_input.company_name or "").strip(),
        phone=digits_only((search_input.phone or "").strip()),
        tax_id=digits_only((search_input.tax_id or "").strip()),
    )


def name_tokens(company_name: str) -> List[str]:
    """Whitespace tokens long enough to be worth a substring filter."""
    return [word for word in company_name.split() if len(word) >= MIN_NAME_TOKEN_LENGTH]


class CandidateRetriever:
    """
    Runs the staged store lookups for one search.

    Usage:
        retriever = CandidateRetriever(store)
        candidates = retriever.retrieve(clean_search_input(search_input))
    """

    def __init__(
        self,
        store: CustomerStore,
        min_name_length: Optional[int] = None,
        min_phone_digits: Optional[int] = None,
        tax_id_length: Optional[int] = None,
        max_workers: Optional[int] = None,
        timeout_seconds: Optional[float] = None
    ):
        """
        Args:
            store: Customer store to query
            min_name_length: Shortest company name that is queried
            min_phone_digits: Fewest phone digits that are queried
            tax_id_length: Exact length of a complete AFM
            max_workers: Branch concurrency; 1 runs branches in order on the caller thread
            timeout_seconds: How long concurrent branches are waited for
        """
        self.store = store
        self.min_name_length = min_name_length or settings.duplicate_min_name_length
        self.min_phone_digits = min_phone_digits or settings.duplicate_min_phone_digits
        self.tax_id_length = tax_id_length or settings.duplicate_tax_id_length
        self.max_workers = max_workers or settings.duplicate_query_workers
        self.timeout_seconds = timeout_seconds or settings.duplicate_query_timeout_seconds

    def plan(self, cleaned: SearchInput) -> RetrievalPlan:
        return RetrievalPlan(
            use_company_name=len(cleaned.company_name) >= self.min_name_length,
            use_phone=len(cleaned.phone) >= self.min_phone_digits,
            use_tax_id=len(cleaned.tax_id) == self.tax_id_length,
        )

    def retrieve(self, cleaned: SearchInput, log=None) -> List[CandidateRecord]:
        """
        Fetch candidates for an already cleaned search input.

        Returns:
            Records unioned by id, in branch order (AFM, phone, name)
        """
        log = log or logger
        plan = self.plan(cleaned)

        if plan.is_empty:
            log.info("retrieval_skipped_no_usable_fields")
            return []

        branches = self._branches(cleaned, plan)
        log.debug("retrieval_started",
                  branches=[name for name, _ in branches],
                  phone_only=plan.phone_only)

        results = self._run_branches(branches, log)

        candidates: Dict[str, CandidateRecord] = {}
        for branch_name, records in results:
            for record in records:
                candidates.setdefault(record.id, record)
            log.debug("branch_completed", branch=branch_name, count=len(records))

        log.info("candidates_retrieved", count=len(candidates))
        return list(candidates.values())

    def _branches(self, cleaned: SearchInput, plan: RetrievalPlan) -> List[Branch]:
        phone_branch = ("phone", lambda: self.store.query_by_substring("phone", cleaned.phone))

        if plan.phone_only:
            return [phone_branch]

        branches: List[Branch] = []
        if plan.use_tax_id:
            branches.append(("tax_id", lambda: self.store.query_by_exact_field("tax_id", cleaned.tax_id)))
        if plan.use_phone:
            branches.append(phone_branch)
        if plan.use_company_name:
            branches.append(("company_name", lambda: self._query_company_name(cleaned.company_name)))
        return branches

    def _query_company_name(self, company_name: str) -> List[CandidateRecord]:
        exact = self.store.query_by_exact_field("company_name", company_name, case_insensitive=True)
        tokens = name_tokens(company_name)
        partial = self.store.query_by_substrings("company_name", tokens) if tokens else []
        return exact + partial

    def _run_branches(self, branches: List[Branch], log) -> List[Tuple[str, List[CandidateRecord]]]:
        if self.max_workers <= 1 or len(branches) == 1:
            return [(name, self._run_branch(name, query, log)) for name, query in branches]

        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(branches)))
        try:
            futures = [
                (name, executor.submit(self._run_branch, name, query, log))
                for name, query in branches
            ]
            wait([future for _, future in futures], timeout=self.timeout_seconds)

            results = []
            for name, future in futures:
                if not future.done():
                    log.warning("store_query_timed_out",
                                branch=name,
                                timeout_seconds=self.timeout_seconds)
                    results.append((name, []))
                    continue
                results.append((name, future.result()))
            return results
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    @staticmethod
    def _run_branch(name: str, query: Callable[[], List[CandidateRecord]], log) -> List[CandidateRecord]:
        try:
            return list(query())
        except Exception:
            log.warning("store_query_failed", branch=name, exc_info=True)
            return []
