"""
Scoring Module for SearchFuel Competitor Discovery

Pure functions over SERP sightings and validated competitors:

1. **Sighting score**: max(0, 100 - rank_absolute), +20 on an industry match
2. **Merge**: one candidate per domain, +10 per additional query
3. **Ranking**: relevance, then query count, then SERP score; top 7

Example Usage:
    from searchfuel.scoring import merge_candidates, rank_competitors

    candidates = merge_candidates(sightings)
    competitors = rank_competitors(validated, own_domain="acme.com")
"""

from .competitor_scoring import (
    INDUSTRY_MATCH_BONUS,
    REPEAT_QUERY_BONUS,
    merge_candidates,
    position_score,
    rank_competitors,
    rank_unvalidated,
    score_sighting,
    select_for_validation,
)

__all__ = [
    "INDUSTRY_MATCH_BONUS",
    "REPEAT_QUERY_BONUS",
    "merge_candidates",
    "position_score",
    "rank_competitors",
    "rank_unvalidated",
    "score_sighting",
    "select_for_validation",
]
