"""Tests for original-to-highlight time mapping."""
import pytest

from petday.models.annotations import (
    AnnotationSet,
    HighlightCandidate,
    MoodPoint,
    NarrativeSegment,
    RecurringSubject,
    SafetyAlert,
    SubjectOccurrence,
    TimelineEntry,
)
from petday.pipeline.mapping import (
    map_and_filter_for_highlight,
    map_to_highlight_time,
    remap_annotations,
    remap_item,
    remap_result,
    spans_from_highlights,
)


SPANS = [(0.0, 10.0), (57.0, 64.0)]


@pytest.fixture
def sample_analysis():
    """Annotation set on the original timeline."""
    return AnnotationSet(
        friends=[RecurringSubject(
            name="Biscuit",
            timestamp="1:00",
            timestamps=[SubjectOccurrence(time="1:00", duration=4), SubjectOccurrence(time="0:30")],
        )],
        safety_alerts=[SafetyAlert(type="danger", message="Road", timestamp="0:05")],
        narrative_segments=[
            NarrativeSegment(text="Off we go", timestamp="0:02"),
            NarrativeSegment(text="A long sniff", timestamp="0:40"),
            NarrativeSegment(text="Biscuit!", timestamp="1:02"),
        ],
        mood_data=[MoodPoint(name="0:00", value=50), MoodPoint(name="0:30", value=60), MoodPoint(name="1:02", value=90)],
        timeline=[TimelineEntry(time="0:05", label="Start", icon="pets"), TimelineEntry(time="0:45", label="Sniff", icon="search")],
    )


class TestMapToHighlightTime:
    """Tests for the pure time mapping."""

    def test_first_segment(self):
        assert map_to_highlight_time(0.0, SPANS) == 0.0
        assert map_to_highlight_time(10.0, SPANS) == 10.0

    def test_later_segment_offset(self):
        assert map_to_highlight_time(62.0, SPANS) == 15.0
        assert map_to_highlight_time(57.0, SPANS) == 10.0

    def test_cut_time(self):
        assert map_to_highlight_time(30.0, SPANS) is None
        assert map_to_highlight_time(100.0, SPANS) is None

    def test_missing_time_or_empty_cut(self):
        assert map_to_highlight_time(None, SPANS) is None
        assert map_to_highlight_time(5.0, []) is None

    def test_monotonic(self):
        times = [0, 3, 9.5, 10, 57, 58.5, 63, 64]
        mapped = [map_to_highlight_time(t, SPANS) for t in times]
        assert mapped == sorted(mapped)

    def test_spans_from_highlights_prefers_seconds(self):
        spans = spans_from_highlights([
            HighlightCandidate(start="0:00", end="0:10"),
            HighlightCandidate(start="0:57", end="1:04", start_sec=57.5, end_sec=64.25),
            HighlightCandidate(start="broken", end="1:10"),
        ])
        assert spans == [(0.0, 10.0), (57.5, 64.25)]


class TestRemapItem:
    """Tests for rewriting a single item."""

    def test_item_in_cut(self):
        item = NarrativeSegment(text="Biscuit!", timestamp="1:02")
        assert remap_item(item, "timestamp", SPANS)

        assert item.timestamp == "0:15"
        assert item.original_time == "1:02"
        assert item.in_highlight is True
        assert item.is_mapped

    def test_item_cut_keeps_time(self):
        item = NarrativeSegment(text="Sniff", timestamp="0:40")
        remap_item(item, "timestamp", SPANS)

        assert item.timestamp == "0:40"
        assert item.original_time == "0:40"
        assert item.in_highlight is False
        assert item.is_mapped

    def test_already_mapped_skipped(self):
        item = NarrativeSegment(timestamp="0:15", original_time="1:02", is_mapped=True, in_highlight=True)
        assert not remap_item(item, "timestamp", SPANS)
        assert item.timestamp == "0:15"

    def test_malformed_untouched(self):
        item = SafetyAlert(timestamp="soon")
        assert not remap_item(item, "timestamp", SPANS)
        assert item.timestamp == "soon"
        assert not item.is_mapped
        assert item.original_time is None


class TestHighlightCopies:
    """Tests for highlight-only filtered copies."""

    def test_cut_items_dropped(self):
        mood = [MoodPoint(name="0:00", value=50), MoodPoint(name="0:30", value=60), MoodPoint(name="1:02", value=90)]
        result = map_and_filter_for_highlight(mood, "name", SPANS)

        assert [(p.name, p.original_time, p.value) for p in result] == [("0:00", "0:00", 50), ("0:15", "1:02", 90)]
        assert all(p.is_mapped for p in result)
        # Source list untouched
        assert mood[2].name == "1:02"
        assert not mood[2].is_mapped

    def test_uses_original_time_when_present(self):
        entry = TimelineEntry(time="0:15", original_time="1:02", is_mapped=True, label="Biscuit")
        result = map_and_filter_for_highlight([entry], "time", SPANS)
        assert result[0].time == "0:15"
        assert result[0].original_time == "1:02"

    def test_empty_cut(self):
        assert map_and_filter_for_highlight([MoodPoint(name="0:00", value=1)], "name", []) == []


class TestRemapAnnotations:
    """Tests for rewriting a whole annotation set."""

    def test_rewrites_all_collections(self, sample_analysis):
        remap_annotations(sample_analysis, SPANS)
        friend = sample_analysis.friends[0]

        assert friend.timestamp == "0:13"
        assert friend.original_time == "1:00"
        assert [ts.time for ts in friend.timestamps] == ["0:13", "0:30"]
        assert [ts.in_highlight for ts in friend.timestamps] == [True, False]
        assert sample_analysis.safety_alerts[0].timestamp == "0:05"
        assert [n.in_highlight for n in sample_analysis.narrative_segments] == [True, False, True]
        assert [e.label for e in sample_analysis.timeline_highlight] == ["Start"]
        assert len(sample_analysis.mood_data_highlight) == 2
        # Original-mode sequences stay on the original timeline
        assert [e.time for e in sample_analysis.timeline] == ["0:05", "0:45"]

    def test_round_trip_original_times(self, sample_analysis):
        given = [n.timestamp for n in sample_analysis.narrative_segments]
        remap_annotations(sample_analysis, SPANS)
        assert [n.original_time for n in sample_analysis.narrative_segments] == given

    def test_idempotent(self, sample_analysis):
        remap_annotations(sample_analysis, SPANS)
        once = sample_analysis.model_dump()

        assert remap_annotations(sample_analysis, SPANS) == 0
        assert sample_analysis.model_dump() == once

    def test_empty_cut_leaves_times(self, sample_analysis):
        assert remap_annotations(sample_analysis, []) == 0
        assert sample_analysis.friends[0].timestamp == "1:00"
        assert not sample_analysis.friends[0].is_mapped
        assert sample_analysis.timeline_highlight == []
        assert sample_analysis.mood_data_highlight == []


class TestRemapResult:
    """Tests for remapping previously processed results."""

    def test_uses_stored_highlights(self, sample_analysis):
        sample_analysis.highlight_timestamps = [
            HighlightCandidate(start="0:00", end="0:10"),
            HighlightCandidate(start="0:57", end="1:04"),
        ]
        remapped, count = remap_result(sample_analysis)

        assert count > 0
        assert remapped.narrative_segments[2].timestamp == "0:15"
        # Input is not modified
        assert sample_analysis.narrative_segments[2].timestamp == "1:02"

    def test_second_pass_changes_nothing(self, sample_analysis):
        sample_analysis.highlight_timestamps = [HighlightCandidate(start="0:00", end="0:10")]
        once, _ = remap_result(sample_analysis)
        twice, count = remap_result(once)

        assert count == 0
        assert twice.model_dump() == once.model_dump()

    def test_existing_highlight_copies_kept(self, sample_analysis):
        sample_analysis.highlight_timestamps = [HighlightCandidate(start="0:00", end="0:10")]
        sample_analysis.timeline_highlight = [TimelineEntry(time="0:01", label="Kept", icon="pets")]

        remapped, _ = remap_result(sample_analysis)
        assert [e.label for e in remapped.timeline_highlight] == ["Kept"]

    def test_no_highlights_is_noop(self, sample_analysis):
        remapped, count = remap_result(sample_analysis)
        assert count == 0
        assert remapped.model_dump() == sample_analysis.model_dump()
