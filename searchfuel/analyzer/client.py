"""
Claude API Client for Competitor Discovery

Wraps the Anthropic Messages API for the pipeline's single-shot JSON
prompts: token and cost tracking, a hard per-call timeout, and JSON
extraction from replies that may be wrapped in code fences.

API failures never raise: callers receive an unsuccessful
AnalysisResponse (or None from analyze_json) and use their fallback.
"""

import asyncio
import json
import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import anthropic

logger = logging.getLogger(__name__)


_CODE_FENCE_RE = re.compile(r"^```(?:json|JSON)?\s*|\s*```$")


@dataclass
class TokenUsage:
    """Track token usage for cost calculation."""
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def estimated_cost(self) -> float:
        """Estimate cost based on Claude Sonnet 4 pricing."""
        # Sonnet 4 pricing: $3/1M input, $15/1M output
        input_cost = (self.input_tokens / 1_000_000) * 3.0
        output_cost = (self.output_tokens / 1_000_000) * 15.0
        return input_cost + output_cost


@dataclass
class AnalysisResponse:
    """Response from a Claude call."""
    content: str
    usage: TokenUsage
    model: str
    stop_reason: str
    success: bool = True
    error: Optional[str] = None


def parse_json_response(content: Optional[str]) -> Optional[Any]:
    """
    Parse a JSON object or array out of a model reply.

    Strips surrounding code fences first; if the reply still has prose
    around the JSON, falls back to the outermost {...} or [...] span.

    Returns:
        Parsed JSON value, or None if nothing parses
    """
    if not content:
        return None

    text = _CODE_FENCE_RE.sub("", content.strip()).strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    for pattern in (r"\{[\s\S]*\}", r"\[[\s\S]*\]"):
        match = re.search(pattern, text)
        if match:
            try:
                return json.loads(match.group())
            except json.JSONDecodeError:
                continue

    logger.warning("Failed to parse JSON from Claude response")
    return None


class ClaudeClient:
    """
    Async client for Claude API.

    Features:
    - Token usage tracking
    - Hard timeout per call, no SDK-level retries
    - JSON reply parsing
    - Cost tracking per run
    """

    DEFAULT_MODEL = "claude-sonnet-4-20250514"
    MAX_TOKENS = 1500
    TEMPERATURE = 0.3

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize Claude client.

        Args:
            api_key: Anthropic API key (defaults to env var)
            model: Model to use (defaults to Sonnet 4)
            timeout: Per-call timeout in seconds
        """
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY not provided")

        self.model = model or self.DEFAULT_MODEL
        self.timeout = timeout
        self.async_client = anthropic.AsyncAnthropic(
            api_key=self.api_key,
            timeout=timeout,
            max_retries=0,
        )

        # Track cumulative usage
        self.total_usage = TokenUsage()
        self.call_count = 0

    async def analyze(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = MAX_TOKENS,
        temperature: float = TEMPERATURE,
        timeout: Optional[float] = None,
    ) -> AnalysisResponse:
        """
        Send a prompt to Claude.

        Args:
            prompt: User prompt
            system: System prompt
            max_tokens: Maximum output tokens
            temperature: Sampling temperature
            timeout: Per-call timeout override in seconds

        Returns:
            AnalysisResponse with content and usage
        """
        kwargs = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system

        call_timeout = self.timeout if timeout is None else timeout

        try:
            response = await asyncio.wait_for(
                self.async_client.messages.create(**kwargs),
                timeout=call_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Claude call timed out after {call_timeout}s")
            return self._failed("timeout", "Request timed out")
        except anthropic.APIError as e:
            logger.error(f"Claude API error: {e}")
            return self._failed("error", str(e))

        content = ""
        for block in response.content:
            if hasattr(block, "text"):
                content += block.text

        usage = TokenUsage(
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        self.total_usage.input_tokens += usage.input_tokens
        self.total_usage.output_tokens += usage.output_tokens
        self.call_count += 1

        logger.info(
            f"Claude call: {usage.input_tokens} in, {usage.output_tokens} out, "
            f"${usage.estimated_cost:.4f}"
        )

        return AnalysisResponse(
            content=content,
            usage=usage,
            model=self.model,
            stop_reason=response.stop_reason,
        )

    async def analyze_json(
        self,
        prompt: str,
        system: Optional[str] = None,
        **kwargs,
    ) -> Optional[Any]:
        """
        Send a prompt that asks for JSON and return the parsed value.

        Returns:
            Parsed JSON, or None when the call failed or the reply did not parse
        """
        response = await self.analyze(prompt, system, **kwargs)
        if not response.success:
            return None
        return parse_json_response(response.content)

    def _failed(self, stop_reason: str, error: str) -> AnalysisResponse:
        return AnalysisResponse(
            content="",
            usage=TokenUsage(),
            model=self.model,
            stop_reason=stop_reason,
            success=False,
            error=error,
        )

    def get_total_cost(self) -> float:
        """Get total cost for all calls in this session."""
        return self.total_usage.estimated_cost

    def get_usage_summary(self) -> Dict[str, Any]:
        """Get summary of all API usage."""
        return {
            "total_calls": self.call_count,
            "input_tokens": self.total_usage.input_tokens,
            "output_tokens": self.total_usage.output_tokens,
            "total_tokens": self.total_usage.total_tokens,
            "estimated_cost": self.total_usage.estimated_cost,
        }


def create_claude_client(
    api_key: Optional[str],
    model: Optional[str] = None,
    timeout: float = 30.0,
) -> Optional[ClaudeClient]:
    """Create a Claude client, or None when no API key is configured."""
    if not api_key:
        logger.warning("ANTHROPIC_API_KEY not configured - using heuristic fallbacks")
        return None
    return ClaudeClient(api_key=api_key, model=model, timeout=timeout)
