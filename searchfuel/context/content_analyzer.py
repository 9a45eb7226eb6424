"""
Content Analyzer

Summarizes the homepage's content: headings in document order, topics
taken from section headings, paragraph word count and a coarse
structure classification.
"""

import logging
import re
from typing import List

from searchfuel.utils.html_text import extract_text, find_elements, strip_scripts

from .models import (
    MAX_HEADINGS,
    MAX_TOPICS,
    ContentAnalysis,
    ContentStructure,
    Heading,
)

logger = logging.getLogger(__name__)


_HEADING_RE = re.compile(r"<h([1-6])\b[^>]*>(.*?)</h\1>", re.DOTALL | re.IGNORECASE)

TOPIC_LEVELS = (2, 3)
DETAILED_MIN_H2 = 6  # More than 5 h2 sections
MINIMAL_MAX_HEADINGS = 2  # Fewer than 3 headings


def extract_headings(html: str) -> List[Heading]:
    """All non-empty h1-h6 headings in document order (uncapped)."""
    headings = []
    for level, inner in _HEADING_RE.findall(html or ""):
        text = extract_text(inner)
        if text:
            headings.append(Heading(level=int(level), text=text))
    return headings


def extract_topics(headings: List[Heading], limit: int = MAX_TOPICS) -> List[str]:
    """Distinct h2/h3 texts, case-insensitively deduplicated, first spelling kept."""
    topics: List[str] = []
    seen = set()
    for heading in headings:
        if heading.level not in TOPIC_LEVELS:
            continue
        key = heading.text.lower()
        if key in seen:
            continue
        seen.add(key)
        topics.append(heading.text)
        if len(topics) >= limit:
            break
    return topics


def count_words(html: str) -> int:
    """Word count over <p> text only."""
    return sum(len(extract_text(p).split()) for p in find_elements(html, "p"))


def classify_structure(headings: List[Heading]) -> ContentStructure:
    h2_count = sum(1 for h in headings if h.level == 2)
    if h2_count >= DETAILED_MIN_H2:
        return ContentStructure.DETAILED
    if len(headings) <= MINIMAL_MAX_HEADINGS:
        return ContentStructure.MINIMAL
    return ContentStructure.STANDARD


def analyze_content(html: str) -> ContentAnalysis:
    """
    Analyze homepage content.

    Structure is classified from all headings; the returned heading list
    is capped at MAX_HEADINGS.
    """
    body = strip_scripts(html or "")
    headings = extract_headings(body)

    analysis = ContentAnalysis(
        headings=headings[:MAX_HEADINGS],
        topics=extract_topics(headings),
        word_count=count_words(body),
        structure=classify_structure(headings),
    )

    logger.info(
        f"Content analysis: {len(headings)} headings, {len(analysis.topics)} topics, "
        f"{analysis.word_count} words, {analysis.structure.value}"
    )

    return analysis
