"""Coverage guarantees.

Every qualifying event of a class (recurring subject, scenery, feeding,
safety) must fall inside some highlight segment. Events that are not yet
covered get a short synthesized segment straddling the event time; each
pass ends by re-merging the segment list.
"""
import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from petday.models.annotations import (
    FeedingEvent,
    MappedItem,
    RecurringSubject,
    SafetyAlert,
    SceneryMoment,
)
from petday.utils.timecode import parse_timestamp

from .config import CurationConfig, DEFAULT_CURATION_CONFIG
from .segments import Segment, SegmentSource, merge_segments, sort_segments

logger = logging.getLogger(__name__)


@dataclass
class CoverageDecision:
    """Records how one event was covered."""
    event_class: str  # "subject", "scenery", "feeding", "safety"
    event_time: Optional[float]
    action: str  # "already_covered", "upgraded", "synthesized", "skipped"
    reason: str
    segment_start: Optional[float] = None
    segment_end: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "event_class": self.event_class,
            "event_time": self.event_time,
            "action": self.action,
            "reason": self.reason,
            "segment_start": self.segment_start,
            "segment_end": self.segment_end,
        }


def event_time(item: MappedItem, field_name: str = "timestamp") -> Optional[float]:
    """
    Original-video time of an annotation item, in seconds.

    Items that were already remapped keep their source time in
    ``original_time``; that value wins over the (highlight) time field.
    """
    if item.is_mapped and item.original_time:
        return parse_timestamp(item.original_time)
    return parse_timestamp(getattr(item, field_name, None))


def _find_covering(segments: List[Segment], time_sec: float) -> int:
    for i, seg in enumerate(segments):
        if seg.contains(time_sec):
            return i
    return -1


def _in_video(time_sec: Optional[float], video_duration: float) -> bool:
    return time_sec is not None and time_sec <= video_duration


def _skip(event_class: str, raw, reason: str) -> CoverageDecision:
    logger.debug(f"[Coverage] Skipping {event_class} event at {raw!r}: {reason}")
    return CoverageDecision(event_class, None, "skipped", reason)


# =============================================================================
# Recurring subjects
# =============================================================================

def subject_occurrences(
    subject: RecurringSubject,
    config: CurationConfig = DEFAULT_CURATION_CONFIG,
) -> List[Tuple[Optional[float], float, object]]:
    """
    All (time, duration, raw) occurrences of a subject.

    Falls back to the primary timestamp when no occurrence list is given.
    """
    occurrences = []
    if subject.timestamps:
        for ts in subject.timestamps:
            duration = ts.duration or subject.duration or config.subject_default_duration
            occurrences.append((event_time(ts, "time"), duration, ts.time))
    elif subject.timestamp:
        duration = subject.duration or config.subject_default_duration
        occurrences.append((event_time(subject), duration, subject.timestamp))
    return occurrences


def ensure_subject_coverage(
    subjects: List[RecurringSubject],
    segments: List[Segment],
    video_duration: float,
    config: CurationConfig = DEFAULT_CURATION_CONFIG,
) -> Tuple[List[Segment], List[CoverageDecision]]:
    """Cover every occurrence of every recurring subject."""
    if not subjects:
        return segments, []

    segments = list(segments)
    decisions = []

    for subject in subjects:
        for time_sec, duration, raw in subject_occurrences(subject, config):
            if not _in_video(time_sec, video_duration):
                decisions.append(_skip("subject", raw, "missing or out-of-range timestamp"))
                continue

            idx = _find_covering(segments, time_sec)
            if idx >= 0:
                decisions.append(CoverageDecision(
                    "subject", time_sec, "already_covered", f"Inside segment for {subject.name}",
                    segments[idx].start, segments[idx].end,
                ))
                continue

            start = max(0.0, time_sec - config.subject_pre_roll)
            end = min(video_duration, time_sec + max(duration, config.subject_min_clip))
            segments.append(Segment(
                start=start,
                end=end,
                source=SegmentSource.SUBJECT,
                subject_name=subject.name,
                anchors=(time_sec,),
            ))
            decisions.append(CoverageDecision(
                "subject", time_sec, "synthesized", f"Added segment for {subject.name}", start, end,
            ))
            logger.info(f"[Friend Inclusion] Added segment {start:.1f}-{end:.1f} for friend \"{subject.name}\" at {raw}")

    return merge_segments(sort_segments(segments), config.merge_gap_seconds), decisions


# =============================================================================
# Scenery
# =============================================================================

def scenery_dwell(moment: SceneryMoment, config: CurationConfig = DEFAULT_CURATION_CONFIG) -> float:
    """Dwell time of a scenery moment, capped to a realistic maximum."""
    if moment.stay_duration is None:
        return 0.0
    return min(float(moment.stay_duration), config.scenery_dwell_cap)


def qualifying_scenery(
    scenery: List[SceneryMoment],
    video_duration: float,
    config: CurationConfig = DEFAULT_CURATION_CONFIG,
) -> List[Tuple[float, float, SceneryMoment]]:
    """(time, dwell, moment) for every scenery moment long enough to cover."""
    result = []
    for moment in scenery or []:
        time_sec = event_time(moment)
        dwell = scenery_dwell(moment, config)
        if not _in_video(time_sec, video_duration) or dwell < config.scenery_min_dwell:
            continue
        result.append((time_sec, dwell, moment))
    return result


def scenery_clip(
    time_sec: float,
    dwell: float,
    video_duration: float,
    config: CurationConfig = DEFAULT_CURATION_CONFIG,
) -> Tuple[float, float]:
    """Bounds of a synthesized scenery clip."""
    start = max(0.0, time_sec - config.scenery_pre_roll)
    end = min(video_duration, time_sec + min(dwell, config.scenery_max_clip))
    return start, end


def is_near_subject(
    start: float,
    end: float,
    segments: List[Segment],
    config: CurationConfig = DEFAULT_CURATION_CONFIG,
) -> bool:
    """True when a subject segment ends or starts within the gap of [start, end]."""
    for seg in segments:
        if not seg.source.has_subject:
            continue
        gap_after = seg.start - end
        gap_before = start - seg.end
        if 0 <= gap_after <= config.near_subject_gap or 0 <= gap_before <= config.near_subject_gap:
            return True
    return False


def ensure_scenery_coverage(
    scenery: List[SceneryMoment],
    segments: List[Segment],
    video_duration: float,
    config: CurationConfig = DEFAULT_CURATION_CONFIG,
) -> Tuple[List[Segment], List[CoverageDecision]]:
    """
    Cover every scenery moment with enough dwell time.

    Scenery that already falls inside a subject segment upgrades it to the
    subject+scenery combo instead of adding a clip.
    """
    if not scenery:
        return segments, []

    segments = list(segments)
    decisions = []

    for time_sec, dwell, moment in qualifying_scenery(scenery, video_duration, config):
        label = moment.scenery_label or moment.description or "scenery"
        high_quality = dwell >= config.scenery_high_quality_dwell

        idx = _find_covering(segments, time_sec)
        if idx >= 0:
            existing = segments[idx]
            upgraded = existing
            if existing.source is SegmentSource.SUBJECT:
                upgraded = replace(upgraded, source=SegmentSource.SUBJECT_SCENERY)
                logger.info(f"[Scenery] Upgraded segment {existing.start:.1f}-{existing.end:.1f} to friend+scenery combo")
            elif existing.source is SegmentSource.AI:
                upgraded = replace(upgraded, source=SegmentSource.SCENERY)
            if high_quality:
                upgraded = replace(upgraded, is_high_quality=True)

            segments[idx] = upgraded
            decisions.append(CoverageDecision(
                "scenery", time_sec,
                "upgraded" if upgraded != existing else "already_covered",
                f"\"{label}\" inside existing {existing.source.value} segment",
                existing.start, existing.end,
            ))
            continue

        start, end = scenery_clip(time_sec, dwell, video_duration, config)
        near = is_near_subject(start, end, segments, config)
        segments.append(Segment(
            start=start,
            end=end,
            source=SegmentSource.SCENERY,
            is_high_quality=high_quality,
            is_near_subject=near,
            anchors=(time_sec,),
        ))
        decisions.append(CoverageDecision(
            "scenery", time_sec, "synthesized",
            f"\"{label}\" (dwell {dwell:.0f}s{', near friend' if near else ''})", start, end,
        ))
        logger.info(
            f"[Scenery Inclusion] Added {'HIGH-QUALITY ' if high_quality else ''}segment "
            f"{start:.1f}-{end:.1f} for \"{label}\" (stayDuration: {dwell}s)"
        )

    return merge_segments(sort_segments(segments), config.merge_gap_seconds), decisions


# =============================================================================
# Point events: feeding and safety
# =============================================================================

def _ensure_point_events(
    event_class: str,
    events: List[Tuple[Optional[float], object, float, float, str]],
    source: SegmentSource,
    segments: List[Segment],
    video_duration: float,
    config: CurationConfig,
    claim_covering: bool = False,
) -> Tuple[List[Segment], List[CoverageDecision]]:
    """
    Shared body for classes whose events are a single timestamp.

    With ``claim_covering`` an already covering segment is re-tagged with
    ``source`` and remembers the event time, so trimming protects it.
    """
    segments = list(segments)
    decisions = []

    for time_sec, raw, pre_roll, clip_length, label in events:
        if not _in_video(time_sec, video_duration):
            decisions.append(_skip(event_class, raw, "missing or out-of-range timestamp"))
            continue

        alerts = (time_sec,) if source is SegmentSource.SAFETY else ()
        idx = _find_covering(segments, time_sec)
        if idx >= 0:
            existing = segments[idx]
            action = "already_covered"
            if claim_covering:
                segments[idx] = replace(
                    existing,
                    source=max(existing.source, source),
                    anchors=tuple(sorted(set(existing.anchors) | {time_sec})),
                    alerts=tuple(sorted(set(existing.alerts) | set(alerts))),
                )
                action = "upgraded" if existing.source is not source else action
            decisions.append(CoverageDecision(
                event_class, time_sec, action, label, existing.start, existing.end,
            ))
            continue

        start = max(0.0, time_sec - pre_roll)
        end = min(video_duration, time_sec + clip_length)
        segments.append(Segment(start=start, end=end, source=source, anchors=(time_sec,), alerts=alerts))
        decisions.append(CoverageDecision(event_class, time_sec, "synthesized", label, start, end))
        logger.info(f"[{event_class.title()} Inclusion] Added segment {start:.1f}-{end:.1f} for {label} at {raw}")

    return merge_segments(sort_segments(segments), config.merge_gap_seconds), decisions


def ensure_feeding_coverage(
    feeding: List[FeedingEvent],
    segments: List[Segment],
    video_duration: float,
    config: CurationConfig = DEFAULT_CURATION_CONFIG,
) -> Tuple[List[Segment], List[CoverageDecision]]:
    """Cover every eating/drinking moment with a brief clip."""
    if not feeding:
        return segments, []

    events = [
        (
            event_time(habit), habit.timestamp,
            config.feeding_pre_roll, config.feeding_clip,
            f"\"{habit.item or 'food'}\" ({habit.action or 'eating'})",
        )
        for habit in feeding
    ]
    return _ensure_point_events("feeding", events, SegmentSource.FEEDING, segments, video_duration, config)


def ensure_safety_coverage(
    alerts: List[SafetyAlert],
    segments: List[Segment],
    video_duration: float,
    config: CurationConfig = DEFAULT_CURATION_CONFIG,
) -> Tuple[List[Segment], List[CoverageDecision]]:
    """Cover every safety alert; danger alerts get a longer clip than warnings."""
    if not alerts:
        return segments, []

    events = [
        (
            event_time(alert), alert.timestamp,
            config.safety_pre_roll,
            config.safety_danger_clip if alert.type == "danger" else config.safety_warning_clip,
            f"\"{alert.type}\" alert: \"{alert.message or ''}\"",
        )
        for alert in alerts
    ]
    return _ensure_point_events(
        "safety", events, SegmentSource.SAFETY, segments, video_duration, config,
        claim_covering=True,
    )
