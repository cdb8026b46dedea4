"""
Score Combiner

Merges the name, phone and tax ID signals into one 0-100 confidence score.

Rule order matters: exact unique identifiers dominate, partial phone queries
("I only remember the last digits") keep a usable score, and corroboration
across name and phone outranks any single strong signal short of an exact
identifier.
"""

from typing import Dict, Tuple
import structlog

from customer_dedup.services.duplicate_detection.normalizers import digits_only
from customer_dedup.services.duplicate_detection.signals import (
    name_similarity,
    phone_similarity,
    round_half_up,
    tax_id_similarity,
)
from customer_dedup.services.duplicate_detection.types import (
    CandidateRecord,
    MatchReasons,
    ScoredCandidate,
    SearchInput,
)

logger = structlog.get_logger(__name__)

DEFAULT_WEIGHTS = {"company_name": 0.4, "phone": 0.4, "tax_id": 0.2}

# A field "matched" for UI highlighting once its raw score reaches these
SIGNIFICANCE_THRESHOLDS = {"company_name": 50, "phone": 50, "tax_id": 80}

# Phone lookup path: phone dominates, name corroborates
PHONE_LOOKUP_WEIGHTS = {"phone": 0.6, "company_name": 0.4}
PHONE_LOOKUP_BOOST = 5
PHONE_LOOKUP_BOOST_FLOOR = 70
PHONE_LOOKUP_BOOST_CAP = 95


def combine_with_rule(
    name_score: int,
    phone_score: int,
    tax_id_score: int,
    search_input: SearchInput
) -> Tuple[int, str]:
    """
    Combine field scores, returning (score, rule that decided it).

    Args:
        name_score: name_similarity of input vs candidate
        phone_score: phone_similarity of input vs candidate
        tax_id_score: tax_id_similarity of input vs candidate
        search_input: The search input, used to see which fields were supplied

    Returns:
        Tuple of (score 0-100, rule name)
    """
    phone_digits = digits_only(search_input.phone)
    tax_id_digits = digits_only(search_input.tax_id)
    phone_only = search_input.is_phone_only

    if tax_id_score == 100 and len(tax_id_digits) >= 3:
        return 100, "tax_id_exact"

    if phone_score == 100 and len(phone_digits) >= 3:
        return 85, "phone_exact"

    if phone_only and phone_score >= 70:
        return max(60, phone_score), "phone_only_strong"

    if phone_only and phone_score >= 40 and len(phone_digits) <= 5:
        return max(40, phone_score), "phone_only_partial"

    if search_input.is_blank:
        return 0, "no_input"

    weighted_sum = 0.0
    applied_weight = 0.0
    if search_input.has_company_name:
        weighted_sum += name_score * DEFAULT_WEIGHTS["company_name"]
        applied_weight += DEFAULT_WEIGHTS["company_name"]
    if search_input.has_phone:
        weighted_sum += phone_score * DEFAULT_WEIGHTS["phone"]
        applied_weight += DEFAULT_WEIGHTS["phone"]
    if search_input.has_tax_id:
        weighted_sum += tax_id_score * DEFAULT_WEIGHTS["tax_id"]
        applied_weight += DEFAULT_WEIGHTS["tax_id"]

    weighted = round_half_up(weighted_sum / applied_weight) if applied_weight else 0

    # Boosts override the weighted result
    if name_score == 100 and phone_score == 100:
        return 100, "boost_both_exact"
    if (name_score == 100 and phone_score >= 70) or (phone_score == 100 and name_score >= 70):
        return 95, "boost_exact_and_strong"
    if name_score >= 80 and phone_score >= 80:
        return 90, "boost_both_strong"

    return weighted, "weighted"


def combine_scores(
    name_score: int,
    phone_score: int,
    tax_id_score: int,
    search_input: SearchInput
) -> int:
    """Combined 0-100 score; see combine_with_rule for the rules."""
    score, _ = combine_with_rule(name_score, phone_score, tax_id_score, search_input)
    return score


def build_match_reasons(name_score: int, phone_score: int, tax_id_score: int) -> MatchReasons:
    return MatchReasons(
        company_name=name_score >= SIGNIFICANCE_THRESHOLDS["company_name"],
        phone=phone_score >= SIGNIFICANCE_THRESHOLDS["phone"],
        tax_id=tax_id_score >= SIGNIFICANCE_THRESHOLDS["tax_id"],
    )


def score_candidate(search_input: SearchInput, record: CandidateRecord) -> ScoredCandidate:
    """Compute all three signals for one candidate and combine them."""
    name_score = name_similarity(search_input.company_name, record.company_name)
    phone_score = phone_similarity(search_input.phone, record.phone)
    tax_id_score = tax_id_similarity(search_input.tax_id, record.tax_id)

    score, rule = combine_with_rule(name_score, phone_score, tax_id_score, search_input)

    logger.debug("candidate_scored",
                 candidate_id=record.id,
                 name_score=name_score,
                 phone_score=phone_score,
                 tax_id_score=tax_id_score,
                 score=score,
                 rule=rule)

    return ScoredCandidate(
        record=record,
        score=score,
        match_reasons=build_match_reasons(name_score, phone_score, tax_id_score),
        component_scores=_components(name_score, phone_score, tax_id_score),
        rule=rule,
    )


def combine_phone_name_scores(phone_score: int, name_score: int, has_name: bool) -> Tuple[int, str]:
    """
    Combine scores for the phone lookup path.

    Without a name the phone score stands alone. With a name, phone carries 60%
    and name 40%; when both exceed 70 the result gets a small boost, capped at
    95 unless both are exact.
    """
    if not has_name:
        return phone_score, "phone_only"

    combined = round_half_up(
        phone_score * PHONE_LOOKUP_WEIGHTS["phone"] + name_score * PHONE_LOOKUP_WEIGHTS["company_name"]
    )
    if phone_score > PHONE_LOOKUP_BOOST_FLOOR and name_score > PHONE_LOOKUP_BOOST_FLOOR:
        cap = 100 if phone_score == 100 and name_score == 100 else PHONE_LOOKUP_BOOST_CAP
        return min(cap, combined + PHONE_LOOKUP_BOOST), "phone_name_boost"
    return combined, "phone_name_weighted"


def _components(name_score: int, phone_score: int, tax_id_score: int) -> Dict[str, int]:
    return {"company_name": name_score, "phone": phone_score, "tax_id": tax_id_score}
