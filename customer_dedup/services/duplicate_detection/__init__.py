"""
Duplicate Detection Service Package

Provides normalizers, field signal scorers, the score combiner, the customer
store interface and the candidate retriever used by the duplicate finder.
"""

from customer_dedup.services.duplicate_detection.types import (
    SearchInput,
    CandidateRecord,
    MatchReasons,
    ScoredCandidate,
)
from customer_dedup.services.duplicate_detection.normalizers import (
    normalize_text,
    normalize_phone,
    normalize_tax_id,
)
from customer_dedup.services.duplicate_detection.signals import (
    name_similarity,
    phone_similarity,
    tax_id_similarity,
    phone_containment_score,
)
from customer_dedup.services.duplicate_detection.scoring import (
    combine_scores,
    combine_with_rule,
    combine_phone_name_scores,
    score_candidate,
)
from customer_dedup.services.duplicate_detection.store import CustomerStore, SqlCustomerStore
from customer_dedup.services.duplicate_detection.retriever import (
    CandidateRetriever,
    RetrievalPlan,
    clean_search_input,
)

__all__ = [
    # Types
    "SearchInput",
    "CandidateRecord",
    "MatchReasons",
    "ScoredCandidate",
    # Normalizers
    "normalize_text",
    "normalize_phone",
    "normalize_tax_id",
    # Signal scorers
    "name_similarity",
    "phone_similarity",
    "tax_id_similarity",
    "phone_containment_score",
    # Score combiner
    "combine_scores",
    "combine_with_rule",
    "combine_phone_name_scores",
    "score_candidate",
    # Store and retrieval
    "CustomerStore",
    "SqlCustomerStore",
    "CandidateRetriever",
    "RetrievalPlan",
    "clean_search_input",
]
