# Curation pipeline - highlight cut selection and timeline remapping
"""
Curation Pipeline: Highlight Cut and Timeline Remapping

Turns the annotations of one long first-person pet video into a short
highlight cut (nominally 120s, never more than 125s) and rewrites every
annotation time onto the highlight timeline.

Pipeline stages:
1. Signal Normalization: Even mood grid, 15-20 entry activity timeline
2. Coarse Trim: Drop low-scoring raw candidates past the budget
3. Coverage: Make sure subjects, scenery, feeding and safety events are shown
4. Final Trim: Priority trim with protected safety and subject clips
5. Scenery Fallback: Re-insert one scenery moment if none survived
6. Timeline Mapping: Original to highlight times, highlight-only copies

Everything is pure and synchronous; each run works on its own copy.
"""

from .runner import CurationResult, curate_highlights
from .mapping import map_to_highlight_time, remap_result

__all__ = ["CurationResult", "curate_highlights", "map_to_highlight_time", "remap_result"]
