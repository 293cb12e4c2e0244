"""Debug artifact generation for the curation pipeline.

Writes a JSON file explaining every trim, coverage and fallback decision.
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List

from .config import CurationConfig
from .segments import Segment, total_duration

logger = logging.getLogger(__name__)


def write_debug_json(
    output_path: Path,
    config: CurationConfig,
    video_duration: float,
    raw_candidates: List[Segment],
    report: dict,
    final_segments: List[Segment],
):
    """
    Write comprehensive debug JSON file.
    """
    debug_data = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "video_duration": video_duration,

        "config": config.to_dict(),

        # Raw candidates as read from the annotation set
        "raw_candidates": [s.to_dict() for s in raw_candidates],

        # Stage decisions
        "report": report,

        "final_segments": [s.to_dict() for s in final_segments],

        "statistics": {
            "raw_candidates": len(raw_candidates),
            "raw_duration": total_duration(raw_candidates),
            "final_segments": len(final_segments),
            "final_duration": total_duration(final_segments),
            "sources": sorted({s.source.value for s in final_segments}),
        },
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        json.dump(debug_data, f, indent=2)

    logger.info(f"Wrote debug JSON to {output_path}")
