"""Pydantic schemas for API requests and responses."""
from typing import List, Optional
from pydantic import BaseModel, Field

from petday.models.annotations import AnnotationModel, AnnotationSet, HighlightCandidate


# =============================================================================
# Curation Schemas
# =============================================================================

class CurateRequest(AnnotationModel):
    """Request to curate a highlight cut from raw annotations."""
    duration: float = Field(..., ge=0, description="Source video duration in seconds")
    analysis: AnnotationSet = Field(..., description="Annotation set from the provider")


class CurateResponse(AnnotationModel):
    """Curated highlight cut and remapped annotations."""
    highlight_timestamps: List[HighlightCandidate]
    analysis: AnnotationSet
    total_duration: float
    fallback_to_original: bool = Field(..., description="True when the cut is empty")
    report: Optional[dict] = None


class RemapRequest(AnnotationModel):
    """Request to remap a previously processed annotation set."""
    analysis: AnnotationSet


class RemapResponse(AnnotationModel):
    """Remapped annotation set."""
    analysis: AnnotationSet
    remapped_count: int


# =============================================================================
# Health Schemas
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
