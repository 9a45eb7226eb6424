"""
Tests for Competitor Validator

Tests homepage fetching per candidate, verdict parsing, survivor
filtering and the candidate cap.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from searchfuel.context.competitor_validator import (
    VALIDATION_SYSTEM_PROMPT,
    CompetitorValidator,
    parse_verdict,
)
from searchfuel.context.deadline import Deadline
from searchfuel.context.fetcher import PageFetcher
from searchfuel.context.models import CandidateCompetitor, Offering

from conftest import FakeWeb, scripted_claude


def candidate(domain: str, serp_score: float = 90.0, query_count: int = 1) -> CandidateCompetitor:
    return CandidateCompetitor(
        domain=domain,
        url=f"https://{domain}/",
        snippet=f"{domain} snippet",
        serp_score=serp_score,
        query_count=query_count,
    )


CANDIDATES = [
    candidate("pipedrive.com", 99.0),
    candidate("hubspot.com", 96.0),
    candidate("salesblog.io", 95.0),
]


# =============================================================================
# VERDICT PARSING TESTS
# =============================================================================


class TestParseVerdict:
    """Tests for parse_verdict."""

    def test_valid_verdict(self):
        verdict = parse_verdict({"isCompetitor": True, "relevanceScore": 85, "reason": " Same market "})
        assert verdict == {"is_competitor": True, "relevance_score": 85, "reason": "Same market"}

    def test_non_dict_is_not_a_competitor(self):
        assert parse_verdict(None)["is_competitor"] is False
        assert parse_verdict(["yes"])["relevance_score"] == 0

    def test_competitor_flag_must_be_boolean_true(self):
        assert parse_verdict({"isCompetitor": "true", "relevanceScore": 90})["is_competitor"] is False
        assert parse_verdict({"isCompetitor": 1, "relevanceScore": 90})["is_competitor"] is False

    @pytest.mark.parametrize("raw, expected", [
        ("85", 85),
        (72.9, 72),
        (150, 100),
        (-5, 0),
        (None, 0),
        (True, 0),
        ("high", 0),
    ])
    def test_score_coerced_and_clamped(self, raw, expected):
        assert parse_verdict({"isCompetitor": True, "relevanceScore": raw})["relevance_score"] == expected

    def test_missing_reason(self):
        assert parse_verdict({"isCompetitor": False})["reason"] == ""


# =============================================================================
# VALIDATOR TESTS
# =============================================================================


class TestCompetitorValidator:
    """Tests for CompetitorValidator.validate."""

    @pytest.mark.asyncio
    async def test_survivors_only(self, fetcher, acme_profile):
        validator = CompetitorValidator(scripted_claude(), fetcher)
        survivors = await validator.validate(CANDIDATES, acme_profile)

        assert [(c.domain, c.relevance_score) for c in survivors] == [
            ("pipedrive.com", 88),
            ("hubspot.com", 72),
        ]
        assert all(c.is_competitor for c in survivors)
        assert survivors[0].validation_reason == "CRM for small sales teams"

    @pytest.mark.asyncio
    async def test_display_name_from_homepage_title(self, fetcher, acme_profile):
        survivors = await CompetitorValidator(scripted_claude(), fetcher).validate(CANDIDATES, acme_profile)

        assert [c.display_name for c in survivors] == ["Pipedrive", "HubSpot"]
        assert survivors[0].to_output() == {"domain": "pipedrive.com", "name": "Pipedrive"}

    @pytest.mark.asyncio
    async def test_serp_fields_carried_over(self, fetcher, acme_profile):
        survivors = await CompetitorValidator(scripted_claude(), fetcher).validate(CANDIDATES, acme_profile)

        assert survivors[0].serp_score == 99.0
        assert survivors[0].snippet == "pipedrive.com snippet"

    @pytest.mark.asyncio
    async def test_unreachable_candidate_dropped(self, fake_web, fetcher, acme_profile):
        claude = scripted_claude()
        survivors = await CompetitorValidator(claude, fetcher).validate(
            CANDIDATES + [candidate("gone.com", 98.0)], acme_profile
        )

        assert "gone.com" not in [c.domain for c in survivors]
        assert "/" in fake_web.fetched_paths("gone.com")
        assert claude.analyze_json.await_count == 3

    @pytest.mark.asyncio
    async def test_low_relevance_dropped(self, fetcher, acme_profile):
        claude = scripted_claude(verdicts={
            "pipedrive.com": {"isCompetitor": True, "relevanceScore": 39, "reason": "Adjacent"},
            "hubspot.com": {"isCompetitor": True, "relevanceScore": 40, "reason": "Overlap"},
        })
        survivors = await CompetitorValidator(claude, fetcher).validate(CANDIDATES, acme_profile)

        assert [c.domain for c in survivors] == ["hubspot.com"]

    @pytest.mark.asyncio
    async def test_prompt_describes_business_and_candidate(self, fetcher, acme_profile):
        claude = scripted_claude()
        offering = Offering(services=["pipeline management software"], products=["Acme Mobile"])
        await CompetitorValidator(claude, fetcher).validate(CANDIDATES[:1], acme_profile, offering)

        prompt = claude.analyze_json.call_args.args[0]
        assert claude.analyze_json.call_args.kwargs["system"] == VALIDATION_SYSTEM_PROMPT
        assert "Company: Acme CRM" in prompt
        assert "pipeline management software" in prompt
        assert "## Candidate Website: pipedrive.com\n" in prompt
        assert "The CRM built for small sales teams." in prompt

    @pytest.mark.asyncio
    async def test_no_claude_returns_nothing(self, fake_web, fetcher, acme_profile):
        survivors = await CompetitorValidator(None, fetcher).validate(CANDIDATES, acme_profile)

        assert survivors == []
        assert fake_web.requests == []

    @pytest.mark.asyncio
    async def test_at_most_fifteen_candidates(self, acme_profile):
        web = FakeWeb()
        candidates = [candidate(f"vendor{i}.com", float(i)) for i in range(20)]
        async with PageFetcher(transport=web.transport) as fetcher:
            await CompetitorValidator(scripted_claude(), fetcher).validate(candidates, acme_profile)

        fetched = sorted(r.url.host for r in web.requests)
        assert fetched == sorted(f"vendor{i}.com" for i in range(5, 20))

    @pytest.mark.asyncio
    async def test_repeat_candidates_validated_first(self, acme_profile):
        web = FakeWeb()
        candidates = [candidate(f"vendor{i}.com", 99.0) for i in range(15)]
        candidates.append(candidate("repeat.com", 50.0, query_count=2))
        async with PageFetcher(transport=web.transport) as fetcher:
            await CompetitorValidator(scripted_claude(), fetcher).validate(candidates, acme_profile)

        assert "repeat.com" in [r.url.host for r in web.requests]

    @pytest.mark.asyncio
    async def test_slow_validation_dropped_at_deadline(self, fetcher, acme_profile):
        async def slow_analyze(prompt, system=None, **kwargs):
            await asyncio.sleep(5)
            return {"isCompetitor": True, "relevanceScore": 90}

        claude = MagicMock()
        claude.analyze_json = AsyncMock(side_effect=slow_analyze)
        survivors = await CompetitorValidator(claude, fetcher).validate(
            CANDIDATES, acme_profile, deadline=Deadline(0.2)
        )

        assert survivors == []
