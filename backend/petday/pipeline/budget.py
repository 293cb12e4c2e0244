"""Duration budget enforcement.

Both trim stages share one greedy skeleton: sort by priority, accept
segments while they fit the budget, hand anything that does not fit to an
overage policy, then restore chronological order.

- coarse trim: raw AI candidates ranked by score, boosted when they
  already cover a recurring subject or a long scenery dwell.
- final trim: all segments ranked by source tag. Safety clips and the
  only clip of a subject are compressed, or kept with a small overage,
  rather than dropped. A safety clip holding several alerts is split so
  each alert keeps a floor-length clip while the hard ceiling allows.
"""
import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Set, Tuple

from petday.models.annotations import RecurringSubject, SceneryMoment

from .config import CurationConfig, DEFAULT_CURATION_CONFIG
from .coverage import event_time, scenery_dwell, subject_occurrences
from .segments import Segment, SegmentSource, sort_segments, total_duration

logger = logging.getLogger(__name__)


PriorityFn = Callable[[Segment], float]


@dataclass
class TrimDecision:
    """Records why a segment was kept, compressed, split or dropped."""
    start: float
    end: float
    source: str
    priority: float
    action: str  # "keep", "compress", "keep_overage", "split", "drop"
    reason: str
    kept_duration: float = 0.0
    alerts: Tuple[float, ...] = ()  # Safety alert times this decision concerns

    def to_dict(self) -> dict:
        return {
            "start": self.start,
            "end": self.end,
            "source": self.source,
            "priority": self.priority,
            "action": self.action,
            "reason": self.reason,
            "kept_duration": self.kept_duration,
            "alerts": list(self.alerts),
        }


class OveragePolicy:
    """
    Decides what happens to a segment that does not fit the budget.

    The base policy drops it. ``observe`` is called for every accepted
    segment so stateful policies can track what is already in the cut.
    ``recover`` may add clips for content the resolved clip no longer shows.
    """

    def observe(self, segment: Segment) -> None:
        pass

    def resolve(
        self,
        segment: Segment,
        used: float,
        budget: float,
    ) -> Tuple[Optional[Segment], str, str]:
        """Return (segment to keep or None, action, reason)."""
        return None, "drop", f"Over budget ({used:.1f}s + {segment.duration:.1f}s > {budget:.0f}s)"

    def recover(
        self,
        segment: Segment,
        clip: Segment,
        used: float,
    ) -> Tuple[List[Segment], List[float]]:
        """Return (clips replacing ``clip``, alert times that could not be kept)."""
        return [clip], []


def compress_around(
    segment: Segment,
    length: float,
    pre_roll: float = 0.0,
    anchors: Optional[Sequence[float]] = None,
) -> Segment:
    """
    Shorten a segment to ``length`` seconds.

    The end is pulled back; if that would cut out the first anchor, the
    window slides forward (within the original bounds) to keep it.
    ``anchors`` defaults to the segment's own. The result only lists the
    anchors and alerts it still contains.
    """
    if anchors is None:
        anchors = segment.anchors
    length = max(0.0, min(length, segment.duration))
    start = segment.start
    end = start + length

    if anchors and min(anchors) > end:
        start = max(segment.start, min(anchors) - pre_roll)
        end = min(segment.end, start + length)
        start = end - length

    return replace(
        segment,
        start=start,
        end=end,
        anchors=tuple(a for a in segment.anchors if start <= a <= end),
        alerts=tuple(a for a in segment.alerts if start <= a <= end),
    )


class ProtectedContentPolicy(OveragePolicy):
    """
    Final-trim exceptions.

    - safety: compressed to the remaining budget (floor 3s); below the
      floor it is compressed further if it still shows its alerts, else kept
      at the floor within the hard ceiling. Dropped only past the ceiling.
      Alerts the compressed clip no longer shows get their own floor clip
      while the hard ceiling allows; the rest are reported as dropped.
    - first clip of a subject: compressed to the remaining budget if that
      leaves at least 3s, otherwise kept whole within the hard ceiling.
    """

    def __init__(self, config: CurationConfig = DEFAULT_CURATION_CONFIG):
        self.config = config
        self.subjects_included: Set[str] = set()

    def observe(self, segment: Segment) -> None:
        if segment.subject_name:
            self.subjects_included.add(segment.subject_name)

    def resolve(self, segment, used, budget):
        remaining = budget - used
        if segment.source is SegmentSource.SAFETY:
            return self._resolve_safety(segment, used, remaining)
        if (
            segment.source is SegmentSource.SUBJECT
            and segment.subject_name
            and segment.subject_name not in self.subjects_included
        ):
            return self._resolve_only_subject_clip(segment, used, remaining)
        return super().resolve(segment, used, budget)

    def _resolve_safety(self, segment, used, remaining):
        floor = self.config.protected_min_clip
        pre_roll = self.config.safety_pre_roll
        alerts = segment.alerts

        if remaining >= floor:
            clip = compress_around(segment, remaining, pre_roll, alerts)
            logger.info(f"[Highlight] Compressed safety clip to {clip.duration:.1f}s")
            return clip, "compress", f"Safety clip compressed to remaining {remaining:.1f}s"

        if remaining > 0:
            clip = compress_around(segment, remaining, pre_roll, alerts)
            if all(clip.contains(a) for a in alerts):
                logger.info(f"[Highlight] Compressed safety clip to {clip.duration:.1f}s (below floor, alert still shown)")
                return clip, "compress", f"Safety clip compressed to remaining {remaining:.1f}s"

        clip = compress_around(segment, min(floor, segment.duration), pre_roll, alerts)
        if used + clip.duration <= self.config.hard_ceiling_seconds:
            logger.info(f"[Highlight] Kept safety clip at {clip.duration:.1f}s floor (allowing slight overage)")
            return clip, "keep_overage", "Safety clip kept at floor within hard ceiling"

        logger.warning(
            f"[Highlight] Safety clip {segment.start:.1f}-{segment.end:.1f} dropped: "
            f"even {clip.duration:.1f}s would exceed {self.config.hard_ceiling_seconds:.0f}s"
        )
        return None, "drop", "Safety clip exceeds hard ceiling even after compression"

    def recover(self, segment, clip, used):
        """
        Give every alert the compressed clip lost a floor-length clip.

        Clips closer than the merge gap are joined instead. Alerts whose
        clip would push the total past the hard ceiling are returned as lost.
        """
        missing = sorted(a for a in segment.alerts if not clip.contains(a))
        if segment.source is not SegmentSource.SAFETY or not missing:
            return [clip], []

        floor = self.config.protected_min_clip
        pieces = [clip]
        lost = []
        total = used + clip.duration

        for alert in missing:
            if any(p.contains(alert) for p in pieces):
                continue

            window = compress_around(segment, floor, self.config.safety_pre_roll, (alert,))
            prev = pieces[-1]
            if window.start <= prev.end + self.config.merge_gap_seconds:
                piece = replace(
                    prev,
                    end=max(prev.end, window.end),
                    anchors=tuple(sorted(set(prev.anchors) | set(window.anchors))),
                    alerts=tuple(sorted(set(prev.alerts) | set(window.alerts))),
                )
                extra = piece.duration - prev.duration
            else:
                piece = window
                extra = window.duration

            if total + extra > self.config.hard_ceiling_seconds:
                logger.warning(
                    f"[Highlight] Safety alert at {alert:.1f}s dropped: "
                    f"its {floor:.0f}s clip would exceed {self.config.hard_ceiling_seconds:.0f}s"
                )
                lost.append(alert)
                continue

            if piece is window:
                pieces.append(piece)
            else:
                pieces[-1] = piece
            total += extra
            logger.info(f"[Highlight] Split safety clip {piece.start:.1f}-{piece.end:.1f} for alert at {alert:.1f}s")

        return pieces, lost

    def _resolve_only_subject_clip(self, segment, used, remaining):
        floor = self.config.protected_min_clip
        name = segment.subject_name

        if remaining >= floor:
            clip = compress_around(segment, remaining, self.config.subject_pre_roll)
            logger.info(f"[Highlight] Compressed friend \"{name}\" clip to {clip.duration:.1f}s")
            return clip, "compress", f"Only clip for {name} compressed to remaining {remaining:.1f}s"

        if used + segment.duration <= self.config.hard_ceiling_seconds:
            logger.info(f"[Highlight] Kept only clip for friend \"{name}\" (allowing slight overage)")
            return segment, "keep_overage", f"Only clip for {name} kept within hard ceiling"

        return None, "drop", f"Only clip for {name} exceeds hard ceiling"


def trim_to_budget(
    segments: Sequence[Segment],
    priority: PriorityFn,
    budget: float,
    policy: Optional[OveragePolicy] = None,
) -> Tuple[List[Segment], List[TrimDecision]]:
    """
    Greedy priority trim.

    Segments are visited by descending priority (ties keep chronological
    order); each is accepted if it fits the remaining budget, otherwise the
    policy decides and may split what it keeps. Survivors come back in
    chronological order.
    """
    policy = policy or OveragePolicy()
    ordered = sorted(sort_segments(segments), key=priority, reverse=True)

    kept = []
    decisions = []
    used = 0.0

    for segment in ordered:
        rank = priority(segment)
        if used + segment.duration <= budget:
            clip, action, reason = segment, "keep", "Fits budget"
        else:
            clip, action, reason = policy.resolve(segment, used, budget)

        if clip is None:
            logger.info(
                f"[Highlight] Trimmed: {segment.start:.1f}-{segment.end:.1f} "
                f"(priority: {rank}, source: {segment.source.value})"
            )
            decisions.append(TrimDecision(
                segment.start, segment.end, segment.source.value, rank, action, reason,
                alerts=segment.alerts,
            ))
            continue

        pieces, lost = policy.recover(segment, clip, used)
        for i, piece in enumerate(pieces):
            kept.append(piece)
            used += piece.duration
            policy.observe(piece)
            if i:
                action, reason = "split", f"Alert clip split from {segment.start:.1f}-{segment.end:.1f}"
            decisions.append(TrimDecision(
                segment.start, segment.end, segment.source.value, rank, action, reason, piece.duration,
                alerts=piece.alerts,
            ))

        for alert in lost:
            decisions.append(TrimDecision(
                segment.start, segment.end, segment.source.value, rank, "drop",
                f"Alert at {alert:.1f}s exceeds hard ceiling even at floor length",
                alerts=(alert,),
            ))

    return sort_segments(kept), decisions


# =============================================================================
# Coarse trim of raw candidates
# =============================================================================

def important_times(
    subjects: List[RecurringSubject],
    scenery: List[SceneryMoment],
    config: CurationConfig = DEFAULT_CURATION_CONFIG,
) -> List[float]:
    """Subject occurrence times and high-quality scenery dwell points."""
    times = []
    for subject in subjects or []:
        for time_sec, _, _ in subject_occurrences(subject, config):
            if time_sec is not None:
                times.append(time_sec)
    for moment in scenery or []:
        time_sec = event_time(moment)
        if time_sec is not None and scenery_dwell(moment, config) >= config.scenery_high_quality_dwell:
            times.append(time_sec)
    return times


def enhanced_score_priority(
    times: List[float],
    config: CurationConfig = DEFAULT_CURATION_CONFIG,
) -> PriorityFn:
    """Candidate score, plus a bonus when it already covers important content."""
    def priority(segment: Segment) -> float:
        score = segment.score or 0.0
        if any(segment.contains(t) for t in times):
            score += config.important_content_bonus
        return score
    return priority


def coarse_trim(
    candidates: List[Segment],
    subjects: List[RecurringSubject],
    scenery: List[SceneryMoment],
    config: CurationConfig = DEFAULT_CURATION_CONFIG,
) -> Tuple[List[Segment], List[TrimDecision]]:
    """Trim raw candidates to the budget when they exceed it."""
    total = total_duration(candidates)
    if total <= config.budget_seconds:
        return sort_segments(candidates), []

    logger.info(f"[Highlight] Duration {total:.1f}s exceeds {config.budget_seconds:.0f}s, trimming...")
    priority = enhanced_score_priority(important_times(subjects, scenery, config), config)
    kept, decisions = trim_to_budget(candidates, priority, config.budget_seconds)
    logger.info(f"[Highlight] Trimmed to {len(kept)} clips, duration: {total_duration(kept):.1f}s")
    return kept, decisions


# =============================================================================
# Final trim by source priority
# =============================================================================

def source_priority(segment: Segment) -> float:
    """Final-trim priority ladder."""
    source = segment.source
    if source is SegmentSource.SAFETY:
        return 100
    if source is SegmentSource.SUBJECT_SCENERY:
        return 95
    if source is SegmentSource.SCENERY and segment.is_near_subject:
        return 85
    if source is SegmentSource.SUBJECT:
        return 80
    if source is SegmentSource.SCENERY and segment.is_high_quality:
        return 75
    if source is SegmentSource.FEEDING:
        return 60
    if source is SegmentSource.SCENERY:
        return 50

    score = segment.score or 0.0
    if score >= 15:
        return 30
    if score >= 10:
        return 20
    return 10


def final_trim(
    segments: List[Segment],
    config: CurationConfig = DEFAULT_CURATION_CONFIG,
) -> Tuple[List[Segment], List[TrimDecision]]:
    """Trim the covered cut to the budget with protected exceptions."""
    total = total_duration(segments)
    if total <= config.budget_seconds:
        return sort_segments(segments), []

    logger.info(
        f"[Highlight] Final duration {total:.1f}s exceeds {config.budget_seconds:.0f}s, smart trimming..."
    )
    kept, decisions = trim_to_budget(
        segments, source_priority, config.budget_seconds, ProtectedContentPolicy(config),
    )
    logger.info(f"[Highlight] Final: {len(kept)} clips, duration: {total_duration(kept):.1f}s")
    return kept, decisions
