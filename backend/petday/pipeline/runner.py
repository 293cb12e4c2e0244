"""Curation Runner.

Orchestrates the full highlight curation pipeline.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from petday.models.annotations import AnnotationSet

from .budget import coarse_trim, final_trim
from .config import CurationConfig, DEFAULT_CURATION_CONFIG
from .coverage import (
    ensure_feeding_coverage,
    ensure_safety_coverage,
    ensure_scenery_coverage,
    ensure_subject_coverage,
)
from .debug_artifacts import write_debug_json
from .fallback import ensure_any_scenery
from .mapping import as_spans, remap_annotations
from .segments import Segment, merge_segments, segments_from_candidates, total_duration
from .signals import normalize_mood_data, normalize_timeline

logger = logging.getLogger(__name__)


@dataclass
class CurationResult:
    """Result from a curation run."""
    segments: List[Segment]
    analysis: AnnotationSet
    report: dict
    config: CurationConfig

    @property
    def total_duration(self) -> float:
        return total_duration(self.segments)

    @property
    def fallback_to_original(self) -> bool:
        """An empty cut means the caller should play the original video."""
        return not self.segments

    def to_dict(self) -> dict:
        """Wire shape of the result (camelCase)."""
        return {
            "highlightTimestamps": [
                seg.to_candidate().model_dump(by_alias=True, exclude_none=True)
                for seg in self.segments
            ],
            "analysis": self.analysis.model_dump(by_alias=True, exclude_none=True),
            "totalDuration": self.total_duration,
            "fallbackToOriginal": self.fallback_to_original,
            "report": self.report,
        }


def curate_highlights(
    analysis: AnnotationSet,
    video_duration: float,
    config: Optional[CurationConfig] = None,
    debug_dir: Optional[Path] = None,
) -> CurationResult:
    """
    Run the full curation pipeline.

    Args:
        analysis: Annotation set from the provider (not modified)
        video_duration: Source video duration in seconds
        config: Pipeline configuration (uses defaults if not provided)
        debug_dir: Where to write the debug JSON when enabled

    Returns:
        CurationResult with the final cut and the remapped annotations
    """
    config = config or DEFAULT_CURATION_CONFIG
    analysis = analysis.model_copy(deep=True)
    duration = max(0.0, float(video_duration))
    analysis.duration = duration

    logger.info(f"Curating highlights for {duration:.1f}s video")

    # Stage 1: Signal normalization
    analysis.mood_data = normalize_mood_data(analysis.mood_data, duration, config)
    analysis.timeline = normalize_timeline(analysis.timeline, analysis.mood_data, duration, config)
    analysis.mood_data_highlight = None
    analysis.timeline_highlight = None

    # Stage 2: Coarse trim of raw candidates
    raw = segments_from_candidates(analysis.highlight_timestamps, duration)
    logger.info(f"[Highlight] {len(raw)} raw candidates, {total_duration(raw):.1f}s")
    segments, coarse_decisions = coarse_trim(raw, analysis.friends, analysis.scenery, config)
    segments = merge_segments(segments, config.merge_gap_seconds)

    # Stage 3: Coverage guarantees
    segments, subject_decisions = ensure_subject_coverage(analysis.friends, segments, duration, config)
    segments, scenery_decisions = ensure_scenery_coverage(analysis.scenery, segments, duration, config)
    segments, feeding_decisions = ensure_feeding_coverage(analysis.dietary_habits, segments, duration, config)
    segments, safety_decisions = ensure_safety_coverage(analysis.safety_alerts, segments, duration, config)

    # Stage 4: Final trim
    segments, final_decisions = final_trim(segments, config)

    # Stage 5: Scenery fallback
    segments, fallback_decision = ensure_any_scenery(analysis.scenery, segments, duration, config)

    # Stage 6: Timeline mapping
    analysis.highlight_timestamps = [seg.to_candidate() for seg in segments]
    remap_annotations(analysis, as_spans(segments))

    if not segments:
        logger.warning("[Highlight] Empty cut, falling back to the original video")
    logger.info(f"[Highlight] Final cut: {len(segments)} clips, {total_duration(segments):.1f}s")

    report = {
        "coarse_trim": [d.to_dict() for d in coarse_decisions],
        "coverage": {
            "subject": [d.to_dict() for d in subject_decisions],
            "scenery": [d.to_dict() for d in scenery_decisions],
            "feeding": [d.to_dict() for d in feeding_decisions],
            "safety": [d.to_dict() for d in safety_decisions],
        },
        "final_trim": [d.to_dict() for d in final_decisions],
        "scenery_fallback": fallback_decision,
    }

    if config.write_debug_json and debug_dir is not None:
        write_debug_json(
            Path(debug_dir) / "curation_debug.json",
            config, duration, raw, report, segments,
        )

    return CurationResult(
        segments=segments,
        analysis=analysis,
        report=report,
        config=config,
    )
