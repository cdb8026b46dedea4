"""
Signal Scorer Functions

Field similarity scores for duplicate detection, each an int in [0, 100].

Design decisions:
- Name matching rewards prefixes and substrings first: users type a partial
  company name and expect the existing record to show up while they type.
- Word order is irrelevant for company names ("ΑΕ Αλφα" vs "Αλφα ΑΕ"), so the
  fallback is RapidFuzz token_sort_ratio.
- Phone matching works on digit strings and scores containment and shared
  prefixes by how many digits agree.
- Tax IDs (AFM) are unique, so anything short of equality scores 0.
"""

import math

from rapidfuzz import fuzz, utils
import structlog

from customer_dedup.services.duplicate_detection.normalizers import (
    digits_only,
    normalize_phone,
    normalize_tax_id,
    normalize_text,
)

logger = structlog.get_logger(__name__)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive scores (round() would bank to even)."""
    return int(math.floor(value + 0.5))


def name_similarity(name_a: str, name_b: str) -> int:
    """
    Score company name similarity.

    Rules, first hit wins:
    1. Exact match after normalization -> 100
    2. Prefix match, scaled by how much of the longer name is covered
    3. Substring match anywhere in the name
    4. token_sort_ratio fallback (word order independent)

    Example:
        >>> name_similarity("Acme Corp", "Corp Acme")
        100
    """
    a = normalize_text(name_a)
    b = normalize_text(name_b)
    if not a or not b:
        return 0

    if a == b:
        return 100

    min_len = min(len(a), len(b))
    max_len = max(len(a), len(b))
    ratio = min_len / max_len

    if a.startswith(b) or b.startswith(a):
        if min_len >= 4 and ratio >= 0.5:
            return round_half_up(60 + ratio * 40)
        if min_len >= 2 and ratio >= 0.15:
            return round_half_up(65 + ratio * 30)

    # Checked even when the prefix branch above fell through its thresholds
    if a in b or b in a:
        if min_len >= 4:
            return round_half_up(65 + ratio * 30)
        if min_len >= 2:
            return round_half_up(65 + ratio * 15)

    # Punctuation-only names process to "", which rapidfuzz would score as 100
    processed_a = utils.default_process(a)
    processed_b = utils.default_process(b)
    if not processed_a or not processed_b:
        return 0

    score = round_half_up(fuzz.token_sort_ratio(processed_a, processed_b))
    logger.debug("name_fuzzy_fallback", score=score)
    return score


def phone_similarity(phone_a: str, phone_b: str) -> int:
    """
    Score phone similarity over normalized digit strings.

    Containment is scored by the length of the shorter number, otherwise by the
    length of the shared leading digits. Symmetric in its arguments.
    """
    a = normalize_phone(phone_a)
    b = normalize_phone(phone_b)
    if not a or not b:
        return 0

    if a == b:
        return 100

    if a in b or b in a:
        min_len = min(len(a), len(b))
        if min_len >= 7:
            return min(80 + (min_len - 7) * 5, 95)
        if min_len >= 5:
            return 70 + (min_len - 5) * 5
        if min_len == 4:
            return 40
        if min_len == 3:
            return 30
        return min_len * 10

    prefix = 0
    for digit_a, digit_b in zip(a, b):
        if digit_a != digit_b:
            break
        prefix += 1

    if prefix >= 7:
        return 70 + (prefix - 7) * 10
    if prefix >= 5:
        return 50 + (prefix - 5) * 10
    if prefix >= 3:
        return 30 + (prefix - 3) * 10
    return 0


def tax_id_similarity(tax_id_a: str, tax_id_b: str) -> int:
    """100 for identical non-empty AFM digits, 0 otherwise."""
    a = normalize_tax_id(tax_id_a)
    b = normalize_tax_id(tax_id_b)
    if a and a == b:
        return 100
    return 0


def _longest_common_substring(a: str, b: str) -> int:
    best = 0
    previous = [0] * (len(b) + 1)
    for char_a in a:
        current = [0] * (len(b) + 1)
        for j, char_b in enumerate(b, 1):
            if char_a == char_b:
                current[j] = previous[j - 1] + 1
                best = max(best, current[j])
        previous = current
    return best


def phone_containment_score(query_phone: str, stored_phone: str) -> int:
    """
    Score a stored phone against a typed phone query (phone lookup path).

    Unlike phone_similarity this is directional: it measures how much of the
    stored number the query explains.
    - exact digits -> 100
    - stored contains query -> share of stored digits covered, capped at 85
    - otherwise longest shared digit run relative to the query, capped at 75
    """
    query = digits_only(query_phone)
    stored = digits_only(stored_phone)
    if not query or not stored:
        return 0

    if stored == query:
        return 100

    if query in stored:
        return min(85, round_half_up(len(query) / len(stored) * 100))

    common = _longest_common_substring(query, stored)
    return min(75, round_half_up(common / len(query) * 100))
