"""Highlight segments and the segment merger.

A Segment is an interval of the source video tagged with why it is in
the cut. Segments are immutable; every stage returns new lists.
"""
import enum
import functools
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from petday.models.annotations import HighlightCandidate
from petday.utils.timecode import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)


@functools.total_ordering
class SegmentSource(enum.Enum):
    """Why a segment is in the cut, ordered by how much it is worth keeping."""
    SAFETY = "safety"
    SUBJECT_SCENERY = "friend+scenery"
    SUBJECT = "friend"
    FEEDING = "food"
    SCENERY = "scenery"
    AI = "ai"

    @property
    def rank(self) -> int:
        return _SOURCE_RANK[self]

    @property
    def has_subject(self) -> bool:
        return self in (SegmentSource.SUBJECT, SegmentSource.SUBJECT_SCENERY)

    @property
    def has_scenery(self) -> bool:
        return self in (SegmentSource.SCENERY, SegmentSource.SUBJECT_SCENERY)

    def __lt__(self, other):
        if not isinstance(other, SegmentSource):
            return NotImplemented
        return self.rank < other.rank

    @classmethod
    def parse(cls, value: Optional[str]) -> "SegmentSource":
        """Read a wire tag; anything unknown counts as AI-scored."""
        for member in cls:
            if member.value == value:
                return member
        return cls.AI


_SOURCE_RANK = {
    SegmentSource.SAFETY: 100,
    SegmentSource.SUBJECT_SCENERY: 95,
    SegmentSource.SUBJECT: 80,
    SegmentSource.FEEDING: 60,
    SegmentSource.SCENERY: 40,
    SegmentSource.AI: 10,
}


@dataclass(frozen=True)
class Segment:
    """A highlight interval of the source video."""
    start: float
    end: float
    source: SegmentSource = SegmentSource.AI
    score: Optional[float] = None
    subject_name: Optional[str] = None
    is_high_quality: bool = False
    is_near_subject: bool = False
    anchors: Tuple[float, ...] = ()  # Event times this segment was built to cover
    reason: Optional[str] = None
    alerts: Tuple[float, ...] = ()  # Safety alert times this segment must show

    @property
    def duration(self) -> float:
        return max(0.0, self.end - self.start)

    def contains(self, time_sec: float) -> bool:
        return self.start <= time_sec <= self.end

    def __repr__(self):
        return (
            f"Segment({self.start:.2f}-{self.end:.2f}, dur={self.duration:.2f}s, "
            f"source={self.source.value})"
        )

    def to_dict(self) -> dict:
        return {
            "start_sec": self.start,
            "end_sec": self.end,
            "duration": self.duration,
            "source": self.source.value,
            "score": self.score,
            "subject_name": self.subject_name,
            "is_high_quality": self.is_high_quality,
            "is_near_subject": self.is_near_subject,
            "anchors": list(self.anchors),
            "reason": self.reason,
            "alerts": list(self.alerts),
        }

    def to_candidate(self) -> HighlightCandidate:
        """Convert to the wire shape used for ``highlightTimestamps``."""
        return HighlightCandidate(
            start=format_timestamp(self.start),
            end=format_timestamp(self.end),
            start_sec=self.start,
            end_sec=self.end,
            reason=self.reason,
            score=self.score,
            source=self.source.value,
            friend_name=self.subject_name,
            is_high_quality=self.is_high_quality,
            is_near_friend=self.is_near_subject,
        )


def segment_from_candidate(
    candidate: HighlightCandidate,
    video_duration: Optional[float] = None,
) -> Optional[Segment]:
    """
    Build a Segment from a candidate interval.

    Returns None when either bound is missing or malformed, or when the
    interval is empty after clamping to the video.
    """
    start = parse_timestamp(candidate.start)
    end = parse_timestamp(candidate.end)
    if start is None or end is None:
        return None

    if video_duration is not None:
        start = min(start, video_duration)
        end = min(end, video_duration)

    if end <= start:
        return None

    return Segment(
        start=start,
        end=end,
        source=SegmentSource.parse(candidate.source),
        score=candidate.score,
        subject_name=candidate.friend_name,
        is_high_quality=bool(candidate.is_high_quality),
        is_near_subject=bool(candidate.is_near_friend),
        reason=candidate.reason,
    )


def segments_from_candidates(
    candidates: Iterable[HighlightCandidate],
    video_duration: Optional[float] = None,
) -> List[Segment]:
    """Convert candidates to chronologically sorted segments, skipping bad ones."""
    segments = []
    for candidate in candidates:
        segment = segment_from_candidate(candidate, video_duration)
        if segment is None:
            logger.debug(f"Skipping malformed highlight candidate {candidate.start}-{candidate.end}")
            continue
        segments.append(segment)
    return sort_segments(segments)


def sort_segments(segments: Iterable[Segment]) -> List[Segment]:
    """Stable chronological sort."""
    return sorted(segments, key=lambda s: s.start)


def total_duration(segments: Iterable[Segment]) -> float:
    return sum(s.duration for s in segments)


def _max_score(a: Optional[float], b: Optional[float]) -> Optional[float]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def merge_pair(current: Segment, nxt: Segment) -> Segment:
    """
    Merge ``nxt`` into ``current`` (which starts no later).

    Tag resolution:
    - safety on either side stays safety
    - subject on one side and scenery on the other becomes subject+scenery
    - otherwise the higher-ranked source wins, ties keep ``current``
    """
    sources = (current.source, nxt.source)
    has_subject = any(s.has_subject for s in sources)
    has_scenery = any(s.has_scenery for s in sources)

    if SegmentSource.SAFETY not in sources and has_subject and has_scenery:
        source = SegmentSource.SUBJECT_SCENERY
        subject_name = current.subject_name or nxt.subject_name
        logger.debug(f"[Merge] Detected friend+scenery combo: {current.start:.1f}-{max(current.end, nxt.end):.1f}")
    elif nxt.source > current.source:
        source = nxt.source
        subject_name = nxt.subject_name or current.subject_name
    else:
        source = current.source
        subject_name = current.subject_name or nxt.subject_name

    return Segment(
        start=current.start,
        end=max(current.end, nxt.end),
        source=source,
        score=_max_score(current.score, nxt.score),
        subject_name=subject_name,
        is_high_quality=current.is_high_quality or nxt.is_high_quality,
        is_near_subject=current.is_near_subject or nxt.is_near_subject,
        anchors=tuple(sorted(set(current.anchors) | set(nxt.anchors))),
        reason=current.reason or nxt.reason,
        alerts=tuple(sorted(set(current.alerts) | set(nxt.alerts))),
    )


def merge_segments(segments: List[Segment], merge_gap: float = 2.0) -> List[Segment]:
    """
    Merge overlapping or nearly adjacent segments.

    A segment is folded into the previous one when it starts within
    ``merge_gap`` seconds of the previous end. The result is sorted and
    pairwise disjoint with gaps larger than ``merge_gap``.
    """
    if not segments:
        return []

    ordered = sort_segments(segments)
    merged = []
    current = ordered[0]

    for nxt in ordered[1:]:
        if nxt.start <= current.end + merge_gap:
            current = merge_pair(current, nxt)
        else:
            merged.append(current)
            current = nxt

    merged.append(current)
    return merged
