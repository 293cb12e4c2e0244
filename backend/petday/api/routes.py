"""API routes."""
import logging

from fastapi import APIRouter, Query

from petday import __version__
from petday.config import settings
from petday.pipeline import curate_highlights, remap_result
from petday.pipeline.config import CurationConfig
from petday.api.schemas import (
    CurateRequest,
    CurateResponse,
    RemapRequest,
    RemapResponse,
    HealthResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Health
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Check API health."""
    return HealthResponse(status="healthy", version=__version__)


# =============================================================================
# Curation
# =============================================================================

@router.post(
    "/curate",
    response_model=CurateResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
def curate(
    request: CurateRequest,
    include_report: bool = Query(False, description="Include stage decisions in the response"),
):
    """Select the highlight cut for one video and remap its annotations."""
    config = CurationConfig(write_debug_json=settings.write_debug_json)
    result = curate_highlights(
        request.analysis,
        request.duration,
        config=config,
        debug_dir=settings.debug_dir,
    )
    logger.info(
        f"Curated {len(result.segments)} clips ({result.total_duration:.1f}s) "
        f"from {request.duration:.1f}s video"
    )

    return CurateResponse(
        highlight_timestamps=result.analysis.highlight_timestamps,
        analysis=result.analysis,
        total_duration=result.total_duration,
        fallback_to_original=result.fallback_to_original,
        report=result.report if include_report else None,
    )


@router.post(
    "/remap",
    response_model=RemapResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
def remap(request: RemapRequest):
    """Remap a previously processed annotation set onto its stored highlight cut."""
    analysis, count = remap_result(request.analysis)
    logger.info(f"Remapped {count} timestamps")
    return RemapResponse(analysis=analysis, remapped_count=count)
