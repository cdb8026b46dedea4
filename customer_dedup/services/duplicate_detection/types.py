"""
Duplicate Detection Data Types

SearchInput is the record being checked, CandidateRecord is a row pulled from
the customer store, ScoredCandidate is a candidate with its score and the
reasons it matched. All are plain dataclasses built per search and never
persisted.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional


@dataclass
class SearchInput:
    """Fields of the customer being created or edited. Any field may be blank."""
    company_name: str = ""
    phone: str = ""
    tax_id: str = ""

    @property
    def has_company_name(self) -> bool:
        return bool(self.company_name and self.company_name.strip())

    @property
    def has_phone(self) -> bool:
        return bool(self.phone and self.phone.strip())

    @property
    def has_tax_id(self) -> bool:
        return bool(self.tax_id and self.tax_id.strip())

    @property
    def is_blank(self) -> bool:
        return not (self.has_company_name or self.has_phone or self.has_tax_id)

    @property
    def is_phone_only(self) -> bool:
        return self.has_phone and not self.has_company_name and not self.has_tax_id


@dataclass(frozen=True)
class CandidateRecord:
    """
    A customer record as projected by the store.

    Display fields are carried through to the caller and never scored.
    """
    id: str
    company_name: str = ""
    phone: str = ""
    tax_id: str = ""
    address: Optional[str] = None
    email: Optional[str] = None
    town: Optional[str] = None
    postal_code: Optional[str] = None

    @classmethod
    def from_model(cls, customer: Any) -> "CandidateRecord":
        """Build a detached projection from a Customer ORM row."""
        return cls(
            id=str(customer.id),
            company_name=customer.company_name or "",
            phone=customer.phone or "",
            tax_id=customer.tax_id or "",
            address=customer.address,
            email=customer.email,
            town=customer.town,
            postal_code=customer.postal_code,
        )


@dataclass(frozen=True)
class MatchReasons:
    """Which fields crossed their individual significance threshold."""
    company_name: bool = False
    phone: bool = False
    tax_id: bool = False


@dataclass
class ScoredCandidate:
    """
    A candidate record with its combined score and explainability details.
    """
    record: CandidateRecord
    score: int
    match_reasons: MatchReasons
    component_scores: Dict[str, int] = field(default_factory=dict)
    rule: str = "weighted"

    EXPLAIN_VERSION = "v1.0"

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def confidence_level(self) -> str:
        """Categorize match confidence for display."""
        if self.score >= 85:
            return "high"
        elif self.score >= 70:
            return "medium"
        else:
            return "low"

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready payload for the caller (UI warning list, API response)."""
        return {
            **asdict(self.record),
            "score": self.score,
            "confidence_level": self.confidence_level,
            "match_reasons": asdict(self.match_reasons),
            "explain": {
                "version": self.EXPLAIN_VERSION,
                "rule": self.rule,
                "component_scores": dict(self.component_scores),
            },
        }
