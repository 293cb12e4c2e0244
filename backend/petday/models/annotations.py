"""Annotation models exchanged with the annotation provider and playback UI.

Field names are snake_case in Python and camelCase on the wire. Unknown
fields are kept so nothing the provider sends is lost on the way through.
"""
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _coerce_time_text(value: Any) -> Any:
    # Providers occasionally send bare seconds as numbers
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


TimeText = Annotated[Optional[str], BeforeValidator(_coerce_time_text)]


class AnnotationModel(BaseModel):
    """Base for all annotation payloads."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class MappedItem(AnnotationModel):
    """Fields added when an item's time is rewritten for the highlight cut."""
    original_time: TimeText = Field(None, description="Time in the original video")
    is_mapped: bool = Field(False, description="Set once the time has been remapped")
    in_highlight: Optional[bool] = Field(None, description="Whether the item survives in the cut")


# =============================================================================
# Highlight candidates
# =============================================================================

class HighlightCandidate(AnnotationModel):
    """A candidate (or final) highlight interval."""
    start: TimeText = None
    end: TimeText = None
    reason: Optional[str] = None
    score: Optional[float] = None
    source: Optional[str] = None
    friend_name: Optional[str] = None
    is_high_quality: Optional[bool] = None
    is_near_friend: Optional[bool] = None
    start_sec: Optional[float] = None
    end_sec: Optional[float] = None


# =============================================================================
# Event classes
# =============================================================================

class SubjectOccurrence(MappedItem):
    """One appearance of a recurring subject."""
    time: TimeText = None
    duration: Optional[float] = None


class RecurringSubject(MappedItem):
    """A recurring subject (another animal or person) seen in the video."""
    name: Optional[str] = None
    type: Optional[str] = None
    timestamp: TimeText = None
    timestamps: List[SubjectOccurrence] = Field(default_factory=list)
    duration: Optional[float] = None
    best_photo_timestamp: TimeText = None
    visual_traits: Optional[str] = None
    interaction_nature: Optional[str] = None
    frequency: Optional[int] = None
    relationship_status: Optional[str] = None
    url: Optional[str] = None


class SceneryMoment(MappedItem):
    """A scenic moment the camera dwelled on."""
    description: Optional[str] = None
    timestamp: TimeText = None
    stay_duration: Optional[float] = None
    scenery_label: Optional[str] = None
    is_near_friend: Optional[bool] = None
    url: Optional[str] = None


class FeedingEvent(MappedItem):
    """An eating or drinking event."""
    item: Optional[str] = None
    action: Optional[str] = None
    timestamp: TimeText = None
    url: Optional[str] = None


class SafetyAlert(MappedItem):
    """A safety alert raised by the annotation provider."""
    type: Optional[str] = "warning"  # "warning" or "danger"
    message: Optional[str] = None
    timestamp: TimeText = None


class NarrativeSegment(MappedItem):
    """A subtitle line of the generated narration."""
    text: str = ""
    timestamp: TimeText = None


# =============================================================================
# Signals
# =============================================================================

class MoodPoint(MappedItem):
    """A mood sample; ``name`` holds the time."""
    name: TimeText = None
    value: Optional[float] = None


class TimelineEntry(MappedItem):
    """An activity timeline entry."""
    time: TimeText = None
    label: Optional[str] = None
    icon: Optional[str] = None


# =============================================================================
# Annotation set
# =============================================================================

class AnnotationSet(AnnotationModel):
    """Everything the annotation provider produced for one video."""
    title: Optional[str] = None
    ai_note: Optional[str] = None
    duration: Optional[float] = Field(None, description="Source video duration in seconds")
    narrative_segments: List[NarrativeSegment] = Field(default_factory=list)
    mood_data: List[MoodPoint] = Field(default_factory=list)
    mood_data_highlight: Optional[List[MoodPoint]] = None
    scenery: List[SceneryMoment] = Field(default_factory=list)
    friends: List[RecurringSubject] = Field(default_factory=list)
    timeline: List[TimelineEntry] = Field(default_factory=list)
    timeline_highlight: Optional[List[TimelineEntry]] = None
    highlight_timestamps: List[HighlightCandidate] = Field(default_factory=list)
    safety_alerts: List[SafetyAlert] = Field(default_factory=list)
    dietary_habits: List[FeedingEvent] = Field(default_factory=list)
    cover_timestamp: TimeText = None
