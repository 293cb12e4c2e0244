# Models package
from petday.models.annotations import (
    AnnotationSet,
    FeedingEvent,
    HighlightCandidate,
    MoodPoint,
    NarrativeSegment,
    RecurringSubject,
    SafetyAlert,
    SceneryMoment,
    SubjectOccurrence,
    TimelineEntry,
)

__all__ = [
    "AnnotationSet",
    "FeedingEvent",
    "HighlightCandidate",
    "MoodPoint",
    "NarrativeSegment",
    "RecurringSubject",
    "SafetyAlert",
    "SceneryMoment",
    "SubjectOccurrence",
    "TimelineEntry",
]
