"""Signal normalization.

The annotation provider returns a sparse mood curve and a sparse activity
timeline. Both are cleaned into fixed-cardinality sequences that always
cover the whole video:
- mood: resampled onto an even grid of 20-30 points
- timeline: 15-20 entries, backfilled from the mood curve when sparse
"""
import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from petday.models.annotations import MoodPoint, TimelineEntry
from petday.utils.timecode import clamp, format_timestamp, parse_timestamp, round_half_up

from .config import CurationConfig, DEFAULT_CURATION_CONFIG

logger = logging.getLogger(__name__)


ALLOWED_TIMELINE_ICONS = frozenset([
    "visibility", "pets", "directions_walk", "directions_run", "favorite", "explore", "speed",
    "park", "home", "restaurant", "bolt", "terrain", "forest", "brush", "groups", "stairs",
    "waves", "search", "wb_sunny", "nightlight_round", "sports_score", "trending_up",
    "trending_down", "straighten", "room", "auto_fix_high", "grass", "meeting_room", "roofing",
    "south", "error", "timeline",
])

FALLBACK_ICON = "timeline"
FALLBACK_LABEL = "Story Beat"
NEUTRAL_MOOD = 50


def safe_duration(video_duration: float) -> int:
    """Whole-second duration used by the signal grids (at least 1s)."""
    return max(1, round_half_up(video_duration))


def pick_even_indices(length: int, target: int) -> List[int]:
    """
    Pick ``target`` indices spread evenly over ``range(length)``.

    The first and last index are always kept; rounding collisions are
    topped up with the lowest unused indices.
    """
    if target <= 0 or length <= 0:
        return []
    if target >= length:
        return list(range(length))

    indices = {0, length - 1}
    for i in range(1, target - 1):
        indices.add(round_half_up(i * (length - 1) / (target - 1)))

    result = sorted(indices)
    cursor = 0
    while len(result) < target:
        if cursor not in indices:
            indices.add(cursor)
            result.append(cursor)
        cursor += 1

    return sorted(result)[:target]


# =============================================================================
# Mood curve
# =============================================================================

def _clean_mood_points(
    mood_data: List[MoodPoint],
    duration: int,
) -> List[Tuple[int, int]]:
    """Clamp, round and dedupe mood points into sorted (second, value) pairs."""
    cleaned = []
    for point in mood_data:
        sec = parse_timestamp(point.name)
        if sec is None:
            logger.debug(f"[Mood] Skipping point with malformed time {point.name!r}")
            continue
        value = NEUTRAL_MOOD if point.value is None else point.value
        if not np.isfinite(value):
            continue
        cleaned.append((
            int(clamp(round_half_up(sec), 0, duration)),
            int(clamp(round_half_up(value), 0, 100)),
        ))

    cleaned.sort(key=lambda p: p[0])

    # Same-second points: the later one wins
    deduped: Dict[int, int] = {}
    for sec, value in cleaned:
        deduped[sec] = value

    return sorted(deduped.items())


def _with_boundaries(points: List[Tuple[int, int]], duration: int) -> List[Tuple[int, int]]:
    """Make sure the control points start at 0 and end at ``duration``."""
    if not points:
        return [(0, NEUTRAL_MOOD), (duration, NEUTRAL_MOOD)]

    points = list(points)
    if points[0][0] > 0:
        points.insert(0, (0, points[0][1]))
    if points[-1][0] < duration:
        points.append((duration, points[-1][1]))
    return points


def mood_grid_size(duration: int, config: CurationConfig = DEFAULT_CURATION_CONFIG) -> int:
    return int(clamp(
        round_half_up(duration / config.mood_sample_spacing),
        config.mood_min_points,
        config.mood_max_points,
    ))


def normalize_mood_data(
    mood_data: Optional[List[MoodPoint]],
    video_duration: float,
    config: CurationConfig = DEFAULT_CURATION_CONFIG,
) -> List[MoodPoint]:
    """
    Resample a sparse mood curve onto an even grid.

    Control points are cleaned and given boundary points at 0 and the end
    of the video (reusing the nearest value), then linearly interpolated.
    """
    duration = safe_duration(video_duration)
    points = _with_boundaries(_clean_mood_points(mood_data or [], duration), duration)

    xp = np.array([p[0] for p in points], dtype=float)
    fp = np.array([p[1] for p in points], dtype=float)

    count = mood_grid_size(duration, config)
    result = []
    for i in range(count):
        sec = duration if i == count - 1 else round_half_up(i * duration / (count - 1))
        value = float(np.interp(sec, xp, fp))
        result.append(MoodPoint(
            name=format_timestamp(sec),
            value=int(clamp(round_half_up(value), 0, 100)),
        ))

    logger.info(f"[Mood] Normalized {len(mood_data or [])} points -> {len(result)} samples")
    return result


# =============================================================================
# Activity timeline
# =============================================================================

def timeline_label_from_mood(value: float) -> Tuple[str, str]:
    """Canned (label, icon) for a backfilled timeline entry."""
    if value >= 85:
        return "Zoomies Peak", "speed"
    if value >= 70:
        return "Play Burst", "directions_run"
    if value >= 55:
        return "Curious Patrol", "explore"
    if value >= 40:
        return "Steady Cruise", "directions_walk"
    return "Quiet Reset", "home"


def _entry_near(entries: List[dict], sec: float, radius: float) -> bool:
    return any(abs(e["sec"] - sec) <= radius for e in entries)


def _downsample(entries: List[dict], limit: int) -> List[dict]:
    if len(entries) <= limit:
        return entries
    return [entries[i] for i in pick_even_indices(len(entries), limit)]


def normalize_timeline(
    timeline: Optional[List[TimelineEntry]],
    mood_data: List[MoodPoint],
    video_duration: float,
    config: CurationConfig = DEFAULT_CURATION_CONFIG,
) -> List[TimelineEntry]:
    """
    Bring the activity timeline to 15-20 entries.

    Sparse timelines are backfilled from the most "interesting" mood samples
    (furthest from neutral), then padded with evenly spaced filler beats.
    Dense timelines are down-sampled keeping the first and last entry.
    """
    duration = safe_duration(video_duration)
    target = int(clamp(
        round_half_up(duration / config.timeline_entry_spacing),
        config.timeline_min_entries,
        config.timeline_max_entries,
    ))

    normalized = []
    for entry in timeline or []:
        sec = parse_timestamp(entry.time)
        if sec is None:
            logger.debug(f"[Timeline] Skipping entry with malformed time {entry.time!r}")
            continue
        label = (entry.label or "").strip() or FALLBACK_LABEL
        icon = entry.icon if entry.icon in ALLOWED_TIMELINE_ICONS else FALLBACK_ICON
        normalized.append({
            "sec": int(clamp(round_half_up(sec), 0, duration)),
            "label": label,
            "icon": icon,
        })
    normalized.sort(key=lambda e: e["sec"])

    deduped: Dict[int, dict] = {}
    for entry in normalized:
        deduped[entry["sec"]] = entry
    entries = sorted(deduped.values(), key=lambda e: e["sec"])
    entries = _downsample(entries, config.timeline_max_entries)

    # Backfill from the mood signal
    if len(entries) < config.timeline_min_entries:
        candidates = []
        for point in mood_data:
            sec = parse_timestamp(point.name)
            if sec is None or point.value is None:
                continue
            candidates.append((sec, point.value))
        candidates.sort(key=lambda c: abs(c[1] - NEUTRAL_MOOD), reverse=True)

        for sec, value in candidates:
            if len(entries) >= target:
                break
            if sec < 0 or sec > duration:
                continue
            if _entry_near(entries, sec, config.timeline_backfill_radius):
                continue
            label, icon = timeline_label_from_mood(value)
            entries.append({"sec": int(sec), "label": label, "icon": icon})

    # Evenly spaced filler beats
    filler_index = 1
    attempts = 0
    while len(entries) < config.timeline_min_entries and attempts < config.timeline_filler_attempts:
        attempts += 1
        sec = round_half_up(filler_index * duration / config.timeline_min_entries)
        filler_index += 1
        if sec > duration:
            break
        if _entry_near(entries, sec, config.timeline_filler_radius):
            continue
        entries.append({"sec": sec, "label": f"{FALLBACK_LABEL} {len(entries) + 1}", "icon": FALLBACK_ICON})

    # Very short videos: dense placeholders
    while len(entries) < config.timeline_min_entries:
        sec = int(clamp(len(entries) - 1, 0, duration))
        entries.append({"sec": sec, "label": f"{FALLBACK_LABEL} {len(entries) + 1}", "icon": FALLBACK_ICON})

    entries.sort(key=lambda e: e["sec"])
    entries = _downsample(entries, config.timeline_max_entries)

    logger.info(f"[Timeline] Normalized {len(timeline or [])} entries -> {len(entries)}")
    return [
        TimelineEntry(time=format_timestamp(e["sec"]), label=e["label"], icon=e["icon"])
        for e in entries
    ]
