"""Original-to-highlight time mapping.

The highlight video is the concatenation of the final segments, so an
original time inside a segment lands at (length of all earlier segments)
plus its offset into that segment. Times outside every segment were cut.
"""
import logging
from typing import Iterable, List, Optional, Sequence, Tuple, TypeVar

from petday.models.annotations import AnnotationSet, HighlightCandidate, MappedItem
from petday.utils.timecode import format_timestamp, parse_timestamp

from .segments import Segment

logger = logging.getLogger(__name__)

Span = Tuple[float, float]
T = TypeVar("T", bound=MappedItem)


def as_spans(segments: Iterable[Segment]) -> List[Span]:
    return [(seg.start, seg.end) for seg in segments]


def spans_from_highlights(highlights: Iterable[HighlightCandidate]) -> List[Span]:
    """
    Read the spans of a stored highlight list.

    Exact second values win over the M:SS strings; unreadable entries are
    skipped.
    """
    spans = []
    for item in highlights or []:
        start = item.start_sec if item.start_sec is not None else parse_timestamp(item.start)
        end = item.end_sec if item.end_sec is not None else parse_timestamp(item.end)
        if start is None or end is None or end < start:
            logger.debug(f"[Mapping] Skipping unreadable highlight {item.start}-{item.end}")
            continue
        spans.append((float(start), float(end)))
    return spans


def map_to_highlight_time(time_sec: Optional[float], spans: Sequence[Span]) -> Optional[float]:
    """
    Map an original-video time onto the highlight timeline.

    Returns None when the time is missing or falls outside every span.
    """
    if time_sec is None:
        return None

    offset = 0.0
    for start, end in spans:
        if start <= time_sec <= end:
            return offset + (time_sec - start)
        offset += end - start
    return None


def _map_text(value: Optional[str], spans: Sequence[Span]) -> Optional[str]:
    mapped = map_to_highlight_time(parse_timestamp(value), spans)
    return None if mapped is None else format_timestamp(mapped)


def remap_item(item: MappedItem, field_name: str, spans: Sequence[Span]) -> bool:
    """
    Rewrite one item's time field in place.

    The source time moves to ``original_time``; items outside the cut keep
    their time and get ``in_highlight=False``. Already mapped items and
    items with a malformed time are left alone. Returns True if rewritten.
    """
    if item.is_mapped:
        return False

    old = getattr(item, field_name)
    if parse_timestamp(old) is None:
        return False

    mapped = _map_text(old, spans)
    item.original_time = old
    setattr(item, field_name, mapped or old)
    item.in_highlight = mapped is not None
    item.is_mapped = True
    return True


def map_and_filter_for_highlight(
    items: Optional[List[T]],
    field_name: str,
    spans: Sequence[Span],
) -> List[T]:
    """
    Highlight-only copies of a time series.

    Items that were cut are dropped; survivors keep their source time in
    ``original_time``. The input list is not modified.
    """
    if not items or not spans:
        return []

    result = []
    for item in items:
        if not getattr(item, field_name):
            continue
        source_time = item.original_time or getattr(item, field_name)
        mapped = _map_text(source_time, spans)
        if mapped is None:
            continue
        result.append(item.model_copy(update={
            "original_time": source_time,
            field_name: mapped,
            "is_mapped": True,
        }))
    return result


def remap_annotations(analysis: AnnotationSet, spans: Sequence[Span]) -> int:
    """
    Rewrite every time-bearing annotation onto the highlight timeline.

    Mutates ``analysis``; callers pass their own copy. Safe to run again on
    already processed data: mapped items are skipped and highlight copies
    are only derived when missing. Returns the number of items touched.
    """
    if not spans:
        logger.info("[Mapping] Empty cut, annotations left on the original timeline")
        if analysis.timeline_highlight is None:
            analysis.timeline_highlight = []
        if analysis.mood_data_highlight is None:
            analysis.mood_data_highlight = []
        return 0

    count = 0
    for subject in analysis.friends:
        count += remap_item(subject, "timestamp", spans)
        for occurrence in subject.timestamps:
            count += remap_item(occurrence, "time", spans)

    for collection in (analysis.scenery, analysis.dietary_habits, analysis.safety_alerts):
        for item in collection:
            count += remap_item(item, "timestamp", spans)

    in_highlight = 0
    for segment in analysis.narrative_segments:
        count += remap_item(segment, "timestamp", spans)
        in_highlight += bool(segment.in_highlight)

    if analysis.timeline_highlight is None:
        analysis.timeline_highlight = map_and_filter_for_highlight(analysis.timeline, "time", spans)
        count += len(analysis.timeline_highlight)
        logger.info(
            f"[Timeline] Highlight-mapped: {len(analysis.timeline)} -> {len(analysis.timeline_highlight)} entries"
        )
    if analysis.mood_data_highlight is None:
        analysis.mood_data_highlight = map_and_filter_for_highlight(analysis.mood_data, "name", spans)
        count += len(analysis.mood_data_highlight)
        logger.info(
            f"[MoodData] Highlight-mapped: {len(analysis.mood_data)} -> {len(analysis.mood_data_highlight)} entries"
        )

    logger.info(
        f"[Narrative] Total: {len(analysis.narrative_segments)}, In highlight: {in_highlight}"
    )
    return count


def remap_result(analysis: AnnotationSet) -> Tuple[AnnotationSet, int]:
    """
    Remap a previously processed annotation set using its stored highlights.

    Works on a deep copy. Used to bring historical results up to date.
    """
    analysis = analysis.model_copy(deep=True)
    spans = spans_from_highlights(analysis.highlight_timestamps)
    if not spans:
        return analysis, 0

    count = remap_annotations(analysis, spans)
    if count:
        logger.info(f"[Migration] Remapped {count} timestamps")
    return analysis, count
