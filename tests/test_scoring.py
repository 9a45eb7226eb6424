"""
Tests for Competitor Scoring

Tests sighting scores, candidate merging, selection for validation and
the final ranking.
"""

import itertools

import pytest

from searchfuel.context.models import (
    MAX_COMPETITORS,
    CandidateCompetitor,
    SerpSighting,
    ValidatedCompetitor,
)
from searchfuel.scoring.competitor_scoring import (
    INDUSTRY_MATCH_BONUS,
    REPEAT_QUERY_BONUS,
    merge_candidates,
    position_score,
    rank_competitors,
    rank_unvalidated,
    score_sighting,
    select_for_validation,
)


def validated(domain, relevance, is_competitor=True, query_count=1, serp_score=50.0):
    return ValidatedCompetitor(
        domain=domain,
        display_name=domain.split(".")[0].title(),
        serp_score=serp_score,
        query_count=query_count,
        is_competitor=is_competitor,
        relevance_score=relevance,
    )


# =============================================================================
# SIGHTING SCORE TESTS
# =============================================================================


class TestSightingScore:
    """Tests for position_score and score_sighting."""

    def test_position_score(self):
        assert position_score(1) == 99.0
        assert position_score(50) == 50.0
        assert position_score(150) == 0.0
        assert position_score(None) == 0.0

    def test_industry_in_title(self):
        assert score_sighting(5, "Best Dental Clinic in Oslo", "smile.no", "dental") == 95 + INDUSTRY_MATCH_BONUS

    def test_industry_in_domain(self):
        assert score_sighting(5, "Smile", "oslodental.no", "Dental") == 95 + INDUSTRY_MATCH_BONUS

    def test_no_industry(self):
        assert score_sighting(5, "Dental", "dental.no", "") == 95.0
        assert score_sighting(5, None, "dental.no", None) == 95.0


# =============================================================================
# MERGE TESTS
# =============================================================================


SIGHTINGS = [
    SerpSighting(0, "hubspot.com", "https://hubspot.com/products/crm", "HubSpot CRM", "", 96.0),
    SerpSighting(0, "pipedrive.com", "https://pipedrive.com/en", "Pipedrive", "Sales CRM.", 99.0),
    SerpSighting(1, "hubspot.com", "https://hubspot.com/crm", "HubSpot", "Free CRM.", 98.0),
    SerpSighting(2, "hubspot.com", "https://hubspot.com/abc", "HubSpot Sales", "Sales hub.", 80.0),
    SerpSighting(2, "close.com", "https://close.com", "Close", "", 70.0),
]


class TestMergeCandidates:
    """Tests for merge_candidates."""

    def test_repeat_queries_add_bonus(self):
        hubspot = next(c for c in merge_candidates(SIGHTINGS) if c.domain == "hubspot.com")

        assert hubspot.query_count == 3
        assert hubspot.serp_score == 98.0 + 2 * REPEAT_QUERY_BONUS

    def test_shortest_url_with_lexicographic_tiebreak(self):
        hubspot = next(c for c in merge_candidates(SIGHTINGS) if c.domain == "hubspot.com")
        assert hubspot.url == "https://hubspot.com/abc"

    def test_first_non_empty_values_in_query_order(self):
        hubspot = next(c for c in merge_candidates(SIGHTINGS) if c.domain == "hubspot.com")

        assert hubspot.display_name == "HubSpot CRM"
        assert hubspot.snippet == "Free CRM."

    def test_sorted_by_score(self):
        assert [c.domain for c in merge_candidates(SIGHTINGS)] == [
            "hubspot.com", "pipedrive.com", "close.com",
        ]

    def test_independent_of_input_order(self):
        expected = merge_candidates(SIGHTINGS)
        for permutation in itertools.permutations(SIGHTINGS):
            assert merge_candidates(permutation) == expected

    def test_domains_normalized(self):
        sightings = [
            SerpSighting(0, "www.Close.com", "https://www.close.com", "Close", "", 70.0),
            SerpSighting(1, "close.com", "https://close.com", "Close", "", 60.0),
        ]
        merged = merge_candidates(sightings)

        assert len(merged) == 1
        assert merged[0].domain == "close.com"
        assert merged[0].query_count == 2

    def test_empty(self):
        assert merge_candidates([]) == []


# =============================================================================
# SELECTION AND RANKING TESTS
# =============================================================================


class TestSelectForValidation:
    """Tests for select_for_validation."""

    def test_query_count_before_score(self):
        candidates = [
            CandidateCompetitor("a.com", serp_score=99.0, query_count=1),
            CandidateCompetitor("b.com", serp_score=60.0, query_count=3),
            CandidateCompetitor("c.com", serp_score=80.0, query_count=3),
        ]
        assert [c.domain for c in select_for_validation(candidates)] == ["c.com", "b.com", "a.com"]

    def test_limit(self):
        candidates = [CandidateCompetitor(f"{i}.com", serp_score=float(i)) for i in range(30)]
        assert len(select_for_validation(candidates)) == 15
        assert len(select_for_validation(candidates, limit=4)) == 4


class TestRankCompetitors:
    """Tests for rank_competitors and rank_unvalidated."""

    def test_only_survivors(self):
        ranked = rank_competitors([
            validated("a.com", 90),
            validated("b.com", 39),
            validated("c.com", 95, is_competitor=False),
            validated("d.com", 40),
        ], "acme.com")

        assert [c.domain for c in ranked] == ["a.com", "d.com"]

    def test_own_domain_dropped(self):
        ranked = rank_competitors([validated("acme.com", 100), validated("b.com", 50)], "https://www.acme.com/")
        assert [c.domain for c in ranked] == ["b.com"]

    def test_tiebreaks(self):
        ranked = rank_competitors([
            validated("z.com", 80, query_count=1, serp_score=99.0),
            validated("y.com", 80, query_count=2, serp_score=10.0),
            validated("x.com", 80, query_count=1, serp_score=99.0),
            validated("w.com", 85),
        ], "acme.com")

        assert [c.domain for c in ranked] == ["w.com", "y.com", "x.com", "z.com"]

    def test_capped_at_seven(self):
        ranked = rank_competitors([validated(f"v{i}.com", 50 + i) for i in range(12)], "acme.com")

        assert len(ranked) == MAX_COMPETITORS
        assert ranked[0].domain == "v11.com"

    def test_low_confidence_logged(self, caplog):
        with caplog.at_level("WARNING"):
            rank_competitors([validated("a.com", 90)], "acme.com")
        assert "Low confidence" in caplog.text

    def test_unvalidated_ranking(self):
        ranked = rank_unvalidated([
            CandidateCompetitor("b.com", display_name="B", serp_score=80.0),
            CandidateCompetitor("acme.com", serp_score=99.0),
            CandidateCompetitor("a.com", display_name="A", serp_score=90.0),
        ], "acme.com")

        assert [c.to_output() for c in ranked] == [
            {"domain": "a.com", "name": "A"},
            {"domain": "b.com", "name": "B"},
        ]
        assert all(c.is_competitor and c.validation_reason == "Not validated" for c in ranked)
        assert all(c.relevance_score == 0 for c in ranked)

    @pytest.mark.parametrize("count", [0, 3, 10])
    def test_unvalidated_cap(self, count):
        candidates = [CandidateCompetitor(f"{i}.com", serp_score=float(i)) for i in range(count)]
        assert len(rank_unvalidated(candidates, "acme.com")) == min(count, MAX_COMPETITORS)
