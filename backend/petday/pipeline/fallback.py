"""Zero-coverage fallback.

If the video had scenery worth showing but trimming left none of it in
the cut, put the single best scenery moment back when the hard ceiling
allows it.
"""
import logging
from typing import List, Optional, Tuple

from petday.models.annotations import SceneryMoment

from .config import CurationConfig, DEFAULT_CURATION_CONFIG
from .coverage import is_near_subject, qualifying_scenery, scenery_clip
from .segments import Segment, SegmentSource, merge_segments, sort_segments, total_duration

logger = logging.getLogger(__name__)


def _best_scenery(
    candidates: List[Tuple[float, float, SceneryMoment]],
    segments: List[Segment],
    video_duration: float,
    config: CurationConfig,
) -> Tuple[float, float, bool]:
    """Near a subject first, then longest dwell, then earliest."""
    ranked = []
    for time_sec, dwell, moment in candidates:
        start, end = scenery_clip(time_sec, dwell, video_duration, config)
        near = bool(moment.is_near_friend) or is_near_subject(start, end, segments, config)
        ranked.append((not near, -dwell, time_sec, near))
    ranked.sort(key=lambda r: r[:3])
    _, neg_dwell, time_sec, near = ranked[0]
    return time_sec, -neg_dwell, near


def ensure_any_scenery(
    scenery: List[SceneryMoment],
    segments: List[Segment],
    video_duration: float,
    config: CurationConfig = DEFAULT_CURATION_CONFIG,
) -> Tuple[List[Segment], Optional[dict]]:
    """
    Re-insert the best scenery moment when the cut shows none.

    Returns the (possibly unchanged) segments and a report entry, or None
    when nothing had to be considered.
    """
    candidates = qualifying_scenery(scenery, video_duration, config)
    if not candidates:
        return segments, None

    if any(seg.contains(t) for t, _, _ in candidates for seg in segments):
        return segments, None

    time_sec, dwell, near = _best_scenery(candidates, segments, video_duration, config)
    start, end = scenery_clip(time_sec, dwell, video_duration, config)
    logger.info(f"[Scenery Fallback] No scenery in final cut, trying {start:.1f}-{end:.1f} (dwell {dwell}s)")

    fallback = Segment(
        start=start,
        end=end,
        source=SegmentSource.SCENERY,
        is_high_quality=True,
        is_near_subject=near,
        anchors=(time_sec,),
    )
    merged = merge_segments(sort_segments(list(segments) + [fallback]), config.merge_gap_seconds)
    total = total_duration(merged)

    if total > config.hard_ceiling_seconds:
        logger.info(
            f"[Scenery Fallback] Skipped: total would be {total:.1f}s > {config.hard_ceiling_seconds:.0f}s"
        )
        return segments, {
            "event_time": time_sec, "action": "skipped", "segment_start": start, "segment_end": end,
            "reason": f"Would exceed hard ceiling ({total:.1f}s)",
        }

    logger.info(f"[Scenery Fallback] Added segment {start:.1f}-{end:.1f}, total now {total:.1f}s")
    return merged, {
        "event_time": time_sec, "action": "added", "segment_start": start, "segment_end": end,
        "reason": "No scenery moment survived trimming",
    }
