"""
API Endpoint for Competitor Discovery

FastAPI handler that:
1. Validates the submitted website URL
2. Runs the competitor discovery pipeline synchronously
3. Returns business info, content analysis and ranked competitors

Only an invalid or unreachable URL fails a request; missing AI or
search credentials just make the answer thinner.
"""

import logging
import sys
from datetime import datetime
from typing import Literal, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from searchfuel import __version__
from searchfuel.context.orchestrator import discover_competitors
from searchfuel.errors import FetchError, InvalidURL
from searchfuel.utils.config import get_settings

settings = get_settings()

# Configure logging to stdout (Railway treats stderr as errors)
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,  # Explicitly use stdout
    force=True,  # Override any existing config
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

# Create FastAPI app
app = FastAPI(
    title="SearchFuel Competitor Discovery",
    description="Business profiling and competitor discovery powered by DataForSEO and Claude AI",
    version=__version__,
)


# ============================================================================
# REQUEST MODELS
# ============================================================================


class AnalyzeWebsiteRequest(BaseModel):
    """Request to analyze a website."""
    url: str = Field(..., min_length=1, max_length=2048)
    mode: Optional[Literal["basic", "validated"]] = None
    deadline_seconds: Optional[float] = Field(default=None, gt=0, le=600)


# ============================================================================
# ERROR HANDLING
# ============================================================================


def error_response(status_code: int, error: str, details: Optional[object] = None) -> JSONResponse:
    body = {"success": False, "error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors, same as bad URLs."""
    return error_response(
        400,
        "Invalid request",
        [{"field": ".".join(str(p) for p in e.get("loc", [])), "message": e.get("msg")} for e in exc.errors()],
    )


# ============================================================================
# API ENDPOINTS
# ============================================================================


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "SearchFuel Competitor Discovery"}


@app.get("/api/health")
async def health():
    """Detailed health check including configured integrations."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "mode": settings.COMPETITOR_DISCOVERY_MODE,
        "ai_configured": settings.has_anthropic,
        "search_configured": settings.has_dataforseo,
    }


@app.post("/api/analyze-website")
async def analyze_website(request: AnalyzeWebsiteRequest):
    """
    Analyze a website and discover its direct competitors.

    Returns 400 for invalid/private URLs, 502 when the site cannot be
    reached and 500 (without internals) for anything unexpected.
    """
    logger.info(f"Website analysis requested: {request.url} (mode={request.mode or 'default'})")

    try:
        result = await discover_competitors(
            request.url,
            mode=request.mode,
            deadline_seconds=request.deadline_seconds,
        )
    except InvalidURL as e:
        logger.warning(f"Rejected URL {request.url}: {e}")
        return error_response(400, e.user_message, str(e))
    except FetchError as e:
        logger.warning(f"Could not fetch {request.url}: {e}")
        details = str(e) if settings.ENVIRONMENT != "production" else None
        return error_response(502, e.user_message, details)
    except Exception:
        logger.exception(f"Website analysis failed for {request.url}")
        return error_response(500, "Internal server error", "An unexpected error occurred")

    for warning in result.warnings:
        logger.info(f"[{result.domain}] {warning}")

    return result.to_response()


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.analyze:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT != "production",
    )
