#!/usr/bin/env python3
"""
Competitor Discovery Runner

Runs the discovery pipeline for one website and prints the JSON
response the API would return.

Usage:
    # Optional credentials (heuristics only without them):
    export DATAFORSEO_LOGIN=your_login
    export DATAFORSEO_PASSWORD=your_password
    export ANTHROPIC_API_KEY=your_key

    python scripts/discover_competitors.py acme.com

    # With options:
    python scripts/discover_competitors.py https://acme.com \
        --mode basic \
        --deadline 45 \
        --verbose
"""

import asyncio
import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from searchfuel.context.orchestrator import discover_competitors
from searchfuel.errors import CompetitorDiscoveryError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def run_discovery(url: str, mode: str = None, deadline: float = None, verbose: bool = False) -> int:
    """Run discovery and print the result. Returns a process exit code."""
    try:
        result = await discover_competitors(url, mode=mode, deadline_seconds=deadline)
    except CompetitorDiscoveryError as e:
        print(json.dumps({"success": False, "error": e.user_message, "details": str(e)}, indent=2))
        return 1

    output = result.to_response()
    if verbose:
        output["debug"] = {
            "mode": result.mode.value,
            "queries": result.queries,
            "offering": {
                "services": result.offering.services,
                "products": result.offering.products,
            },
            "competitor_scores": [
                {
                    "domain": c.domain,
                    "relevance_score": c.relevance_score,
                    "query_count": c.query_count,
                    "serp_score": c.serp_score,
                    "reason": c.validation_reason,
                }
                for c in result.competitors
            ],
            "warnings": result.warnings,
            "execution_time_seconds": round(result.execution_time_seconds, 2),
        }

    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0


def main():
    """Main entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Discover the direct competitors of a website"
    )
    parser.add_argument(
        "url",
        help="Website to analyze (e.g., acme.com)"
    )
    parser.add_argument(
        "--mode",
        default=None,
        choices=["basic", "validated"],
        help="Discovery mode (default: COMPETITOR_DISCOVERY_MODE setting)"
    )
    parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Overall deadline in seconds; partial results are returned when it hits"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Include queries, offerings and scores in the output"
    )

    args = parser.parse_args()

    sys.exit(asyncio.run(run_discovery(
        url=args.url,
        mode=args.mode,
        deadline=args.deadline,
        verbose=args.verbose,
    )))


if __name__ == "__main__":
    main()
