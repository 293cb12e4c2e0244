"""Highlight curation configuration."""
from dataclasses import dataclass


@dataclass
class CurationConfig:
    """Configuration for the highlight curation pipeline."""

    # Duration budget
    budget_seconds: float = 120.0  # Nominal highlight length
    hard_ceiling_seconds: float = 125.0  # Absolute limit under protected exceptions
    merge_gap_seconds: float = 2.0  # Adjacency tolerance for merging

    # Recurring-subject coverage
    subject_pre_roll: float = 3.0
    subject_min_clip: float = 3.0
    subject_default_duration: float = 5.0  # Used when an occurrence has no duration

    # Scenery coverage
    scenery_pre_roll: float = 2.0
    scenery_min_dwell: float = 3.0  # Dwell needed to qualify for coverage
    scenery_high_quality_dwell: float = 5.0
    scenery_max_clip: float = 5.0
    scenery_dwell_cap: float = 15.0  # Longer reported dwells are unrealistic
    near_subject_gap: float = 10.0

    # Feeding coverage
    feeding_pre_roll: float = 1.0
    feeding_clip: float = 3.0

    # Safety coverage
    safety_pre_roll: float = 1.0
    safety_danger_clip: float = 4.0
    safety_warning_clip: float = 3.0

    # Trimming
    protected_min_clip: float = 3.0  # Floor for compressed safety/subject clips
    important_content_bonus: float = 50.0  # Stage 1 boost for subject/scenery cover

    # Mood curve
    mood_sample_spacing: float = 12.0
    mood_min_points: int = 20
    mood_max_points: int = 30

    # Activity timeline
    timeline_entry_spacing: float = 24.0
    timeline_min_entries: int = 15
    timeline_max_entries: int = 20
    timeline_backfill_radius: float = 12.0
    timeline_filler_radius: float = 8.0
    timeline_filler_attempts: int = 300

    # Debug
    write_debug_json: bool = False

    def to_dict(self) -> dict:
        """Convert config to dictionary for serialization."""
        return {
            "budget_seconds": self.budget_seconds,
            "hard_ceiling_seconds": self.hard_ceiling_seconds,
            "merge_gap_seconds": self.merge_gap_seconds,
            "subject_pre_roll": self.subject_pre_roll,
            "subject_min_clip": self.subject_min_clip,
            "subject_default_duration": self.subject_default_duration,
            "scenery_pre_roll": self.scenery_pre_roll,
            "scenery_min_dwell": self.scenery_min_dwell,
            "scenery_high_quality_dwell": self.scenery_high_quality_dwell,
            "scenery_max_clip": self.scenery_max_clip,
            "scenery_dwell_cap": self.scenery_dwell_cap,
            "near_subject_gap": self.near_subject_gap,
            "feeding_pre_roll": self.feeding_pre_roll,
            "feeding_clip": self.feeding_clip,
            "safety_pre_roll": self.safety_pre_roll,
            "safety_danger_clip": self.safety_danger_clip,
            "safety_warning_clip": self.safety_warning_clip,
            "protected_min_clip": self.protected_min_clip,
            "important_content_bonus": self.important_content_bonus,
            "mood_sample_spacing": self.mood_sample_spacing,
            "mood_min_points": self.mood_min_points,
            "mood_max_points": self.mood_max_points,
            "timeline_entry_spacing": self.timeline_entry_spacing,
            "timeline_min_entries": self.timeline_min_entries,
            "timeline_max_entries": self.timeline_max_entries,
        }


# Default configuration instance
DEFAULT_CURATION_CONFIG = CurationConfig()
