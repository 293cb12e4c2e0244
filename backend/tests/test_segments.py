"""Tests for highlight segments and merging."""
import pytest

from petday.models.annotations import HighlightCandidate
from petday.pipeline.segments import (
    Segment,
    SegmentSource,
    merge_pair,
    merge_segments,
    segment_from_candidate,
    segments_from_candidates,
    total_duration,
)


class TestSegmentSource:
    """Tests for the source tag ordering."""

    def test_priority_order(self):
        ladder = [
            SegmentSource.AI,
            SegmentSource.SCENERY,
            SegmentSource.FEEDING,
            SegmentSource.SUBJECT,
            SegmentSource.SUBJECT_SCENERY,
            SegmentSource.SAFETY,
        ]
        assert sorted(reversed(ladder)) == ladder
        assert max(ladder) is SegmentSource.SAFETY

    def test_parse_wire_tags(self):
        assert SegmentSource.parse("friend+scenery") is SegmentSource.SUBJECT_SCENERY
        assert SegmentSource.parse("food") is SegmentSource.FEEDING

    def test_parse_unknown_is_ai(self):
        assert SegmentSource.parse(None) is SegmentSource.AI
        assert SegmentSource.parse("mystery") is SegmentSource.AI


class TestSegment:
    """Tests for Segment dataclass."""

    def test_duration(self):
        seg = Segment(start=10.0, end=25.0)
        assert seg.duration == 15.0

    def test_repr(self):
        seg = Segment(start=0.0, end=10.0, source=SegmentSource.SAFETY)
        assert "0.00-10.00" in repr(seg)
        assert "source=safety" in repr(seg)

    def test_contains_is_inclusive(self):
        seg = Segment(start=10.0, end=20.0)
        assert seg.contains(10.0)
        assert seg.contains(20.0)
        assert not seg.contains(20.5)

    def test_to_candidate(self):
        seg = Segment(57.0, 64.0, SegmentSource.SUBJECT, subject_name="Biscuit")
        candidate = seg.to_candidate()

        assert candidate.start == "0:57"
        assert candidate.end == "1:04"
        assert candidate.start_sec == 57.0
        assert candidate.source == "friend"
        assert candidate.friend_name == "Biscuit"


class TestCandidateConversion:
    """Tests for reading raw candidates."""

    def test_valid_candidate(self):
        seg = segment_from_candidate(HighlightCandidate(start="0:05", end="0:15", score=12, reason="zoomies"))
        assert (seg.start, seg.end) == (5.0, 15.0)
        assert seg.source is SegmentSource.AI
        assert seg.score == 12
        assert seg.reason == "zoomies"

    @pytest.mark.parametrize("start,end", [(None, "0:10"), ("oops", "0:10"), ("0:10", "0:10"), ("0:20", "0:10")])
    def test_malformed_or_empty_skipped(self, start, end):
        assert segment_from_candidate(HighlightCandidate(start=start, end=end)) is None

    def test_clamped_to_video(self):
        seg = segment_from_candidate(HighlightCandidate(start="1:20", end="1:40"), video_duration=90)
        assert seg.end == 90.0

    def test_entirely_past_video_skipped(self):
        assert segment_from_candidate(HighlightCandidate(start="2:00", end="2:10"), video_duration=90) is None

    def test_batch_sorted_and_filtered(self):
        segments = segments_from_candidates([
            HighlightCandidate(start="1:00", end="1:10"),
            HighlightCandidate(start="bad", end="1:10"),
            HighlightCandidate(start="0:10", end="0:20"),
        ])
        assert [s.start for s in segments] == [10.0, 60.0]


class TestMerge:
    """Tests for the segment merger."""

    def test_overlapping_merge(self):
        merged = merge_segments([Segment(0, 10), Segment(5, 15)])
        assert len(merged) == 1
        assert (merged[0].start, merged[0].end) == (0, 15)

    def test_gap_within_tolerance_merges(self):
        merged = merge_segments([Segment(0, 10), Segment(12, 15)])
        assert len(merged) == 1

    def test_gap_beyond_tolerance_kept_apart(self):
        merged = merge_segments([Segment(0, 10), Segment(12.5, 15)])
        assert len(merged) == 2

    def test_unsorted_input(self):
        merged = merge_segments([Segment(30, 40), Segment(0, 10), Segment(9, 12)])
        assert [(s.start, s.end) for s in merged] == [(0, 12), (30, 40)]

    def test_empty(self):
        assert merge_segments([]) == []

    def test_higher_rank_wins(self):
        merged = merge_pair(Segment(0, 10, SegmentSource.AI, score=5), Segment(8, 12, SegmentSource.FEEDING))
        assert merged.source is SegmentSource.FEEDING
        assert merged.score == 5

    def test_subject_and_scenery_make_combo(self):
        merged = merge_pair(
            Segment(0, 10, SegmentSource.SUBJECT, subject_name="Biscuit"),
            Segment(9, 14, SegmentSource.SCENERY, is_high_quality=True),
        )
        assert merged.source is SegmentSource.SUBJECT_SCENERY
        assert merged.subject_name == "Biscuit"
        assert merged.is_high_quality

    def test_safety_is_never_demoted(self):
        merged = merge_segments([
            Segment(0, 5, SegmentSource.SAFETY, anchors=(1.0,)),
            Segment(4, 10, SegmentSource.SUBJECT, subject_name="Biscuit", anchors=(7.0,)),
            Segment(9, 12, SegmentSource.SCENERY, anchors=(11.0,)),
        ])
        assert len(merged) == 1
        assert merged[0].source is SegmentSource.SAFETY
        assert merged[0].subject_name == "Biscuit"
        assert merged[0].anchors == (1.0, 7.0, 11.0)

    def test_result_disjoint_and_grows_only_by_absorbed_gaps(self):
        starts = [0, 7, 14, 25, 32, 45, 52, 59, 70, 77]
        segments = [Segment(s, s + 6.0) for s in starts]
        merged = merge_segments(segments)

        assert [(s.start, s.end) for s in merged] == [(0, 20), (25, 38), (45, 65), (70, 83)]
        for prev, nxt in zip(merged, merged[1:]):
            assert nxt.start > prev.end + 2.0
        absorbed = sum(
            nxt.start - prev.end
            for prev, nxt in zip(segments, segments[1:])
            if 0 < nxt.start - prev.end <= 2.0
        )
        assert absorbed == 6
        assert total_duration(merged) == total_duration(segments) + absorbed
