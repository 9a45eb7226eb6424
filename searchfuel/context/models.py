"""
Competitor Discovery Data Models

Defines all types flowing through the discovery pipeline:
- Business profile and structured data extracted from the homepage
- Content analysis and satellite pages
- Offerings and AI enhancements
- SERP candidates, validated competitors and the final result
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional


# =============================================================================
# CAPS
# =============================================================================

MAX_HEADINGS = 20
MAX_TOPICS = 10
MAX_OFFERINGS = 7
MAX_QUERIES = 7
MAX_EXECUTED_QUERIES = 5
MAX_VALIDATION_CANDIDATES = 15
MAX_COMPETITORS = 7
MIN_RELEVANCE_SCORE = 40


# =============================================================================
# ENUMS
# =============================================================================


class ContentStructure(str, Enum):
    """Coarse classification of how much structure a page has."""
    MINIMAL = "minimal"  # Fewer than 3 headings
    STANDARD = "standard"
    DETAILED = "detailed"  # More than 5 H2 sections


class PageType(str, Enum):
    """Kind of satellite page fetched for additional signal."""
    ABOUT = "about"
    SERVICES = "services"
    BLOG = "blog"


class DiscoveryMode(str, Enum):
    """How much machinery the pipeline runs."""
    BASIC = "basic"  # Single heuristic query, no AI validation
    VALIDATED = "validated"  # Multi-query, AI-validated


# =============================================================================
# HOMEPAGE EXTRACTION
# =============================================================================


@dataclass
class StructuredData:
    """Schema.org objects parsed from JSON-LD blocks."""
    organization: Optional[Dict[str, Any]] = None
    business: Optional[Dict[str, Any]] = None
    website: Optional[Dict[str, Any]] = None

    @property
    def found(self) -> bool:
        return any((self.organization, self.business, self.website))


@dataclass(frozen=True)
class BusinessProfile:
    """What the business is, as far as its homepage (and AI) can tell."""
    company_name: str
    description: str = ""
    industry: str = ""
    language: str = "en"

    # Filled in by the context enhancer
    target_audience: Optional[str] = None
    business_type: Optional[str] = None
    value_proposition: Optional[str] = None

    def with_enhancements(self, enhancement: Optional["BusinessEnhancement"]) -> "BusinessProfile":
        """Return a new profile with AI refinements applied (self is unchanged)."""
        if not enhancement:
            return self

        return replace(
            self,
            industry=enhancement.industry or self.industry,
            description=enhancement.description or self.description,
            target_audience=enhancement.target_audience or self.target_audience,
            business_type=enhancement.business_type or self.business_type,
            value_proposition=enhancement.value_proposition or self.value_proposition,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "company_name": self.company_name,
            "company_description": self.description,
            "industry": self.industry,
            "language": self.language,
            "target_audience": self.target_audience,
            "business_type": self.business_type,
            "value_proposition": self.value_proposition,
        }


@dataclass(frozen=True)
class Heading:
    level: int  # 1-6
    text: str


@dataclass
class ContentAnalysis:
    """Headings, topics and size of the homepage content."""
    headings: List[Heading] = field(default_factory=list)
    topics: List[str] = field(default_factory=list)
    word_count: int = 0
    structure: ContentStructure = ContentStructure.MINIMAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headings": [{"level": h.level, "text": h.text} for h in self.headings],
            "topics": list(self.topics),
            "word_count": self.word_count,
            "content_structure": self.structure.value,
        }


@dataclass
class SatellitePage:
    """An about/services/blog page fetched alongside the homepage."""
    url: str
    page_type: PageType
    html: str = field(default="", repr=False)

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "type": self.page_type.value}


# =============================================================================
# AI OUTPUTS
# =============================================================================


@dataclass(frozen=True)
class BusinessEnhancement:
    """Refinements returned by the business context enhancer."""
    industry: Optional[str] = None
    description: Optional[str] = None
    target_audience: Optional[str] = None
    business_type: Optional[str] = None
    value_proposition: Optional[str] = None


@dataclass
class Offering:
    """Concrete services and products the business sells."""
    services: List[str] = field(default_factory=list)
    products: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.services and not self.products


# =============================================================================
# COMPETITORS
# =============================================================================


@dataclass
class SerpSighting:
    """One organic result that survived filtering, for one query."""
    query_index: int
    domain: str
    url: str
    title: str = ""
    snippet: str = ""
    score: float = 0.0


@dataclass
class CandidateCompetitor:
    """A domain surfaced by one or more SERP queries."""
    domain: str
    display_name: Optional[str] = None
    url: Optional[str] = None
    snippet: Optional[str] = None
    serp_score: float = 0.0
    query_count: int = 1


@dataclass
class ValidatedCompetitor:
    """A candidate judged by the validator."""
    domain: str
    display_name: Optional[str] = None
    url: Optional[str] = None
    snippet: Optional[str] = None
    serp_score: float = 0.0
    query_count: int = 1
    is_competitor: bool = False
    relevance_score: int = 0
    validation_reason: str = ""

    @classmethod
    def from_candidate(
        cls,
        candidate: CandidateCompetitor,
        is_competitor: bool = False,
        relevance_score: int = 0,
        validation_reason: str = "",
        display_name: Optional[str] = None,
    ) -> "ValidatedCompetitor":
        return cls(
            domain=candidate.domain,
            display_name=display_name or candidate.display_name,
            url=candidate.url,
            snippet=candidate.snippet,
            serp_score=candidate.serp_score,
            query_count=candidate.query_count,
            is_competitor=is_competitor,
            relevance_score=relevance_score,
            validation_reason=validation_reason,
        )

    @property
    def survives(self) -> bool:
        return self.is_competitor and self.relevance_score >= MIN_RELEVANCE_SCORE

    def to_output(self) -> Dict[str, Optional[str]]:
        return {"domain": self.domain, "name": self.display_name}


# =============================================================================
# RESULT
# =============================================================================


@dataclass
class CompetitorDiscoveryResult:
    """Everything one pipeline run produced."""
    url: str
    domain: str
    profile: BusinessProfile
    content_analysis: ContentAnalysis = field(default_factory=ContentAnalysis)
    structured_data: StructuredData = field(default_factory=StructuredData)
    additional_pages: List[SatellitePage] = field(default_factory=list)
    offering: Offering = field(default_factory=Offering)
    queries: List[str] = field(default_factory=list)
    competitors: List[ValidatedCompetitor] = field(default_factory=list)
    mode: DiscoveryMode = DiscoveryMode.VALIDATED
    warnings: List[str] = field(default_factory=list)
    execution_time_seconds: float = 0.0

    def to_response(self) -> Dict[str, Any]:
        """JSON shape returned to the embedding service."""
        return {
            "success": True,
            "businessInfo": self.profile.to_dict(),
            "competitors": [c.to_output() for c in self.competitors],
            "content_analysis": self.content_analysis.to_dict(),
            "additional_pages": [p.to_dict() for p in self.additional_pages],
            "structured_data_found": self.structured_data.found,
        }
