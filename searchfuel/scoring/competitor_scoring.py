"""
Competitor Scoring

Pure functions that turn SERP sightings into ranked competitors:
- Position score for a single organic result
- Merge of sightings across queries into one candidate per domain
- Selection of candidates worth validating
- Final ranking of validated competitors

Nothing here does I/O, so results depend only on the inputs: the same
sightings always merge to the same candidates regardless of the order
in which concurrent queries finished.
"""

import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

from searchfuel.context.models import (
    MAX_COMPETITORS,
    MAX_VALIDATION_CANDIDATES,
    CandidateCompetitor,
    SerpSighting,
    ValidatedCompetitor,
)
from searchfuel.utils.domain_filter import normalize_domain

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

POSITION_CEILING = 100
INDUSTRY_MATCH_BONUS = 20
REPEAT_QUERY_BONUS = 10
LOW_CONFIDENCE_THRESHOLD = 3


# =============================================================================
# SIGHTING SCORES
# =============================================================================


def position_score(rank_absolute: Optional[int]) -> float:
    """100 for rank 0, one point less per position, never negative."""
    if rank_absolute is None:
        return 0.0
    return float(max(0, POSITION_CEILING - int(rank_absolute)))


def score_sighting(
    rank_absolute: Optional[int],
    title: Optional[str],
    domain: str,
    industry: Optional[str] = None,
) -> float:
    """
    Score one organic result.

    Args:
        rank_absolute: Absolute SERP position
        title: Result title
        domain: Result domain
        industry: Detected industry; a mention in title or domain adds a bonus

    Returns:
        Sighting score (0-120)
    """
    score = position_score(rank_absolute)
    keyword = (industry or "").strip().lower()
    if keyword and (keyword in (title or "").lower() or keyword in domain.lower()):
        score += INDUSTRY_MATCH_BONUS
    return score


# =============================================================================
# MERGE
# =============================================================================


def merge_candidates(sightings: Iterable[SerpSighting]) -> List[CandidateCompetitor]:
    """
    Merge sightings from all queries into one candidate per domain.

    For each domain:
    - query_count is the number of distinct queries it appeared in
    - serp_score is its best single sighting plus REPEAT_QUERY_BONUS for
      every additional query
    - url is the shortest URL seen (lexicographically smallest on ties)
    - snippet and display name come from the first non-empty value in
      query order

    The result does not depend on the order of the input.

    Returns:
        Candidates sorted by (serp_score desc, query_count desc, domain)
    """
    ordered = sorted(
        sightings,
        key=lambda s: (s.query_index, s.domain, -s.score, s.url, s.title, s.snippet),
    )

    grouped: Dict[str, List[SerpSighting]] = OrderedDict()
    for sighting in ordered:
        domain = normalize_domain(sighting.domain)
        if domain:
            grouped.setdefault(domain, []).append(sighting)

    candidates = []
    for domain, group in grouped.items():
        queries = {s.query_index for s in group}
        best = max(s.score for s in group)
        urls = [s.url for s in group if s.url]

        candidates.append(CandidateCompetitor(
            domain=domain,
            display_name=next((s.title for s in group if s.title), None),
            url=min(urls, key=lambda u: (len(u), u)) if urls else None,
            snippet=next((s.snippet for s in group if s.snippet), None),
            serp_score=best + REPEAT_QUERY_BONUS * (len(queries) - 1),
            query_count=len(queries),
        ))

    candidates.sort(key=lambda c: (-c.serp_score, -c.query_count, c.domain))
    return candidates


# =============================================================================
# SELECTION AND RANKING
# =============================================================================


def select_for_validation(
    candidates: Iterable[CandidateCompetitor],
    limit: int = MAX_VALIDATION_CANDIDATES,
) -> List[CandidateCompetitor]:
    """Top candidates by (query_count desc, serp_score desc), domain as tiebreak."""
    return sorted(
        candidates,
        key=lambda c: (-c.query_count, -c.serp_score, c.domain),
    )[:limit]


def rank_competitors(
    validated: Iterable[ValidatedCompetitor],
    own_domain: str,
    limit: int = MAX_COMPETITORS,
) -> List[ValidatedCompetitor]:
    """
    Final ranking of validated competitors.

    Keeps only survivors (is_competitor and relevance >= 40), drops the
    business's own domain, sorts by (relevance desc, query_count desc,
    serp_score desc) and truncates to limit.
    """
    own = normalize_domain(own_domain)
    survivors = [
        c for c in validated
        if c.survives and normalize_domain(c.domain) != own
    ]
    ranked = sorted(
        survivors,
        key=lambda c: (-c.relevance_score, -c.query_count, -c.serp_score, c.domain),
    )[:limit]

    if len(ranked) < LOW_CONFIDENCE_THRESHOLD:
        logger.warning(
            f"Low confidence: only {len(ranked)} validated competitors for {own or 'unknown domain'}"
        )

    return ranked


def rank_unvalidated(
    candidates: Iterable[CandidateCompetitor],
    own_domain: str,
    limit: int = MAX_COMPETITORS,
) -> List[ValidatedCompetitor]:
    """
    Ranking for basic mode, where no validation runs.

    Candidates are ordered by SERP score alone and passed through as
    competitors without a relevance judgement: relevance_score stays 0
    and the validated-mode threshold does not apply.
    """
    own = normalize_domain(own_domain)
    ranked = sorted(
        (c for c in candidates if normalize_domain(c.domain) != own),
        key=lambda c: (-c.serp_score, -c.query_count, c.domain),
    )[:limit]

    if len(ranked) < LOW_CONFIDENCE_THRESHOLD:
        logger.warning(
            f"Low confidence: only {len(ranked)} SERP candidates for {own or 'unknown domain'}"
        )

    return [
        ValidatedCompetitor.from_candidate(c, is_competitor=True, validation_reason="Not validated")
        for c in ranked
    ]
