"""
Pydantic models for the project timeline document.

A project's timeline is stored as one JSON document on the project row:

    TimelineData -> Tracks -> TimelineItems
                 -> CompositionFilters

Attributes are snake_case in Python and camelCase on the wire and in the
stored document (``startTime``, ``trackId``, ``compositionFilters``), so the
document keeps the shape the editor front-end reads.

Times are seconds. ``start_time``/``end_time`` are timeline-space and
``asset_start_time``/``asset_end_time`` are the source-space trim window.
Intervals are half-open: ``[start_time, end_time)``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


DEFAULT_TIMELINE_SCALE = 50.0


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# ENUMS
# =============================================================================


class TrackType(str, Enum):
    """Kind of media a track holds."""
    VIDEO = "video"
    AUDIO = "audio"


class ReorderingType(str, Enum):
    WITHIN_TRACK = "within_track"
    ACROSS_TRACKS = "across_tracks"


class TimingMode(str, Enum):
    """How clip timings are rewritten after a reorder."""
    MAINTAIN_ORIGINAL = "maintain_original"
    SEQUENTIAL = "sequential"
    PRESERVE_GAPS = "preserve_gaps"


def intervals_overlap(start_a: float, end_a: float, start_b: float, end_b: float) -> bool:
    """Half-open interval intersection: ``[a) ∩ [b) != ∅``."""
    return start_a < end_b and end_a > start_b


# =============================================================================
# TIMELINE DOCUMENT
# =============================================================================


class Overlay(CamelModel):
    """
    Pixel-space placement of a visual item over the composition.

    Every field is optional here because partial overlay updates merge into
    whatever the item already has.
    """
    x: float | None = None
    y: float | None = None
    width: float | None = None
    height: float | None = None
    z_index: float | None = None


class TimelineItem(CamelModel):
    """
    One placed clip.

    ``type``, ``name``, ``url`` and ``metadata`` are copied from the asset at
    placement time and are not re-synced afterwards.
    """
    id: str
    asset_id: str | None = None
    type: str = Field(description="video, image, audio or draft")
    name: str
    url: str | None = None
    start_time: float
    end_time: float
    asset_start_time: float
    asset_end_time: float
    track_id: str
    metadata: dict[str, Any] | None = None
    overlay: Overlay | None = None
    volume: float | None = None
    opacity: float | None = None

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


class Track(CamelModel):
    id: str = Field(description="'{type}-{index}', e.g. 'video-2'")
    type: TrackType
    name: str
    items: list[TimelineItem] = Field(default_factory=list)
    muted: bool | None = None
    locked: bool | None = None

    def has_conflict(
        self,
        start_time: float,
        end_time: float,
        exclude_item_id: str | None = None,
    ) -> bool:
        """True if ``[start_time, end_time)`` intersects any item on this track."""
        return any(
            item.id != exclude_item_id
            and intervals_overlap(start_time, end_time, item.start_time, item.end_time)
            for item in self.items
        )

    def overlapping_pairs(self) -> list[tuple[TimelineItem, TimelineItem]]:
        """All pairs of items on this track whose intervals intersect, in list order."""
        pairs = []
        for i in range(len(self.items) - 1):
            for j in range(i + 1, len(self.items)):
                first, second = self.items[i], self.items[j]
                if intervals_overlap(
                    first.start_time, first.end_time, second.start_time, second.end_time
                ):
                    pairs.append((first, second))
        return pairs


class CompositionFilters(CamelModel):
    """
    Project-wide visual adjustments applied on top of the rendered output.

    A missing value means "no effect". Bounds are enforced by the timeline
    operator, see ``COMPOSITION_FILTER_BOUNDS``.
    """
    contrast: float | None = None
    saturation: float | None = None
    brightness: float | None = None
    hue_rotate: float | None = None
    sepia: float | None = None
    blur: float | None = None
    grayscale: float | None = None
    invert: float | None = None


# (min, max, error message) per filter, inclusive bounds
COMPOSITION_FILTER_BOUNDS: dict[str, tuple[float, float, str]] = {
    "contrast": (0.5, 2.0, "Contrast must be between 0.5 and 2.0"),
    "saturation": (0.0, 3.0, "Saturation must be between 0.0 and 3.0"),
    "brightness": (0.5, 2.0, "Brightness must be between 0.5 and 2.0"),
    "hue_rotate": (-180.0, 180.0, "Hue rotation must be between -180 and 180 degrees"),
    "sepia": (0.0, 1.0, "Sepia must be between 0.0 and 1.0"),
    "blur": (0.0, 10.0, "Blur must be between 0 and 10 pixels"),
    "grayscale": (0.0, 1.0, "Grayscale must be between 0.0 and 1.0"),
    "invert": (0.0, 1.0, "Invert must be between 0.0 and 1.0"),
}


class TimelineData(CamelModel):
    """
    The complete timeline of a project.

    ``duration`` is derived (the latest item end time) and is recomputed by
    every mutation. ``timeline_scale`` is display-only (pixels per second).
    """
    tracks: list[Track] = Field(default_factory=list)
    duration: float = 0.0
    timeline_scale: float = DEFAULT_TIMELINE_SCALE
    composition_filters: CompositionFilters | None = None

    @classmethod
    def create_default(cls) -> TimelineData:
        """One empty video track and one empty audio track."""
        return cls(
            tracks=[
                Track(id="video-1", type=TrackType.VIDEO, name="Video 1"),
                Track(id="audio-1", type=TrackType.AUDIO, name="Audio 1"),
            ],
            duration=0.0,
            timeline_scale=DEFAULT_TIMELINE_SCALE,
        )

    @classmethod
    def from_document(cls, document: dict[str, Any] | None) -> TimelineData:
        if not document:
            return cls.create_default()
        return cls.model_validate(document)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def get_track(self, track_id: str) -> Track | None:
        return next((t for t in self.tracks if t.id == track_id), None)

    def tracks_of_type(self, track_type: TrackType) -> list[Track]:
        """Tracks of one type in stored order."""
        return [t for t in self.tracks if t.type == track_type]

    def add_track(self, track_type: TrackType) -> Track:
        """Append a new track named after the count of existing tracks of its type."""
        index = len(self.tracks_of_type(track_type)) + 1
        track = Track(
            id=f"{track_type.value}-{index}",
            type=track_type,
            name=f"{track_type.value.capitalize()} {index}",
        )
        self.tracks.append(track)
        return track

    def find_item(self, item_id: str) -> tuple[Track, TimelineItem] | None:
        for track in self.tracks:
            for item in track.items:
                if item.id == item_id:
                    return track, item
        return None

    def max_end_time(self) -> float:
        return max(
            (item.end_time for track in self.tracks for item in track.items),
            default=0.0,
        )

    def recompute_duration(self) -> float:
        self.duration = self.max_end_time()
        return self.duration


# =============================================================================
# API REQUEST MODELS
# =============================================================================


class PlacementOverlay(CamelModel):
    x: float
    y: float
    width: float
    height: float
    z_index: float | None = None


class ApplyCompositionFiltersRequest(CamelModel):
    filters: CompositionFilters


class PlaceAssetRequest(CamelModel):
    asset_id: str
    start_time: float
    end_time: float | None = None
    track_type: TrackType
    track_index: int | None = None
    overlay: PlacementOverlay | None = None
    volume: float | None = None
    opacity: float | None = None
    asset_start_time: float | None = None
    asset_end_time: float | None = None


class ModifyTimelineAssetRequest(CamelModel):
    start_time: float | None = None
    end_time: float | None = None
    overlay: Overlay | None = None
    volume: float | None = None
    opacity: float | None = None
    asset_start_time: float | None = None
    asset_end_time: float | None = None
    move_to_track_id: str | None = None
    move_to_track_type: TrackType | None = None


class TrackAssignment(CamelModel):
    item_id: str
    track_id: str
    position: int = Field(description="Zero-based index within the target track")


class ReorderTimelineAssetsRequest(CamelModel):
    reordering_type: ReorderingType
    track_id: str | None = None
    item_order: list[str] | None = None
    track_assignments: list[TrackAssignment] | None = None
    timing_mode: TimingMode
    gap_duration: float | None = None


# =============================================================================
# API RESPONSE MODELS
# =============================================================================


class TimelineResponse(CamelModel):
    ok: bool
    project_id: str
    timeline: TimelineData


class PlaceAssetResponse(CamelModel):
    timeline_item_id: str
    track_id: str
    message: str


class ModifyTimelineAssetResponse(CamelModel):
    success: bool
    message: str
    updated_item: TimelineItem | None = None


class ReorderTimelineAssetsResponse(CamelModel):
    success: bool
    message: str
    reordered_items: list[TimelineItem] | None = None
    conflicts_resolved: list[str] | None = None


class FiltersMutationResponse(CamelModel):
    ok: bool
    composition_filters: CompositionFilters | None = None
