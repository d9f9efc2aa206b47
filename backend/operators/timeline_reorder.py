"""
Reordering of timeline items, within one track or across several.

Timing after a reorder follows one of three modes:

- ``maintain_original``: start/end times are left alone. Any overlaps this
  produces are reported back as advisory strings, never rejected.
- ``sequential``: items are laid end to end from 0 in their new order,
  separated by ``gap_duration``. Each item keeps its own duration.
- ``preserve_gaps``: like ``sequential`` but the gaps come from the track's
  original chronological layout. The i-th original gap is used after the
  i-th item of the *new* order (positional, not by item identity); a zero
  or missing original gap falls back to ``gap_duration``. Only
  available within a track; across tracks it behaves like ``sequential``.
"""

import logging
from uuid import UUID

from sqlalchemy.orm import Session as DBSession

from models.timeline_models import (
    ReorderingType,
    ReorderTimelineAssetsResponse,
    TimelineData,
    TimelineItem,
    TimingMode,
    TrackAssignment,
)
from operators.timeline_operator import (
    InvalidRangeError,
    InvalidReorderError,
    ItemNotInTrackError,
    MissingRequiredFieldError,
    TimelineItemNotFoundError,
    TrackNotFoundError,
    load_timeline,
    save_timeline,
)


logger = logging.getLogger(__name__)

_TIMING_DESCRIPTIONS = {
    TimingMode.MAINTAIN_ORIGINAL: "maintaining original timing",
    TimingMode.SEQUENTIAL: "making clips sequential",
    TimingMode.PRESERVE_GAPS: "preserving relative gaps",
}

_REORDER_DESCRIPTIONS = {
    ReorderingType.WITHIN_TRACK: "within track",
    ReorderingType.ACROSS_TRACKS: "across tracks",
}


# =============================================================================
# TIMING LAYOUTS
# =============================================================================


def layout_sequential(items: list[TimelineItem], gap: float) -> None:
    """Lay items end to end starting at 0, ``gap`` seconds apart."""
    current_time = 0.0
    for item in items:
        duration = item.end_time - item.start_time
        item.start_time = current_time
        item.end_time = current_time + duration
        current_time = item.end_time + gap


def original_gaps(items: list[TimelineItem]) -> list[float]:
    """Gaps between consecutive items in chronological order (overlaps count as 0)."""
    chronological = sorted(items, key=lambda item: item.start_time)
    return [
        max(0.0, chronological[i].start_time - chronological[i - 1].end_time)
        for i in range(1, len(chronological))
    ]


def layout_with_gaps(items: list[TimelineItem], gaps: list[float], fallback_gap: float) -> None:
    current_time = 0.0
    for index, item in enumerate(items):
        duration = item.end_time - item.start_time
        item.start_time = current_time
        item.end_time = current_time + duration
        # A zero original gap (touching or overlapping) also takes the fallback
        gap = gaps[index] if index < len(gaps) and gaps[index] else fallback_gap
        current_time = item.end_time + gap


def detect_overlaps(timeline: TimelineData) -> list[str]:
    """One advisory line per track that has overlapping items."""
    conflicts = []
    for track in timeline.tracks:
        pairs = track.overlapping_pairs()
        if pairs:
            names = ", ".join(f"{first.name} and {second.name}" for first, second in pairs)
            conflicts.append(f"Detected overlaps in {track.name}: {names}")
    return conflicts


# =============================================================================
# REORDER MODES
# =============================================================================


def _reorder_within_track(
    timeline: TimelineData,
    track_id: str | None,
    item_order: list[str] | None,
    timing_mode: TimingMode,
    gap: float,
) -> list[TimelineItem]:
    if not track_id or item_order is None:
        raise MissingRequiredFieldError(
            "trackId and itemOrder are required for within_track reordering"
        )

    track = timeline.get_track(track_id)
    if track is None:
        raise TrackNotFoundError(track_id)

    items_by_id = {item.id: item for item in track.items}
    unknown = [item_id for item_id in item_order if item_id not in items_by_id]
    if unknown:
        raise ItemNotInTrackError(track_id, unknown)
    if len(set(item_order)) != len(item_order):
        raise InvalidReorderError(f"itemOrder for track {track_id} contains duplicate ids")
    missing = [item_id for item_id in items_by_id if item_id not in item_order]
    if missing:
        raise InvalidReorderError(
            f"itemOrder for track {track_id} is missing items: {', '.join(missing)}"
        )

    gaps = original_gaps(track.items)
    reordered = [items_by_id[item_id] for item_id in item_order]

    if timing_mode == TimingMode.PRESERVE_GAPS and len(reordered) > 1:
        layout_with_gaps(reordered, gaps, gap)
    elif timing_mode in (TimingMode.SEQUENTIAL, TimingMode.PRESERVE_GAPS):
        layout_sequential(reordered, gap)

    track.items = reordered
    return reordered


def _reorder_across_tracks(
    timeline: TimelineData,
    track_assignments: list[TrackAssignment] | None,
    timing_mode: TimingMode,
    gap: float,
) -> list[TimelineItem]:
    if track_assignments is None:
        raise MissingRequiredFieldError(
            "trackAssignments is required for across_tracks reordering"
        )

    # Group by target track, keeping first-seen track order
    assignments_by_track: dict[str, list[TrackAssignment]] = {}
    for assignment in track_assignments:
        assignments_by_track.setdefault(assignment.track_id, []).append(assignment)

    for track_id in assignments_by_track:
        if timeline.get_track(track_id) is None:
            raise TrackNotFoundError(track_id)
    for assignment in track_assignments:
        if assignment.position < 0:
            raise InvalidRangeError(
                f"Position for item {assignment.item_id} cannot be negative"
            )
        if timeline.find_item(assignment.item_id) is None:
            raise TimelineItemNotFoundError(assignment.item_id)

    assigned_ids = {assignment.item_id for assignment in track_assignments}
    if len(assigned_ids) != len(track_assignments):
        raise InvalidReorderError("trackAssignments names the same item more than once")

    items_to_move: dict[str, TimelineItem] = {}
    for track in timeline.tracks:
        kept = []
        for item in track.items:
            if item.id in assigned_ids:
                items_to_move[item.id] = item
            else:
                kept.append(item)
        track.items = kept

    reordered: list[TimelineItem] = []
    for track_id, assignments in assignments_by_track.items():
        track = timeline.get_track(track_id)
        for assignment in sorted(assignments, key=lambda a: a.position):
            item = items_to_move[assignment.item_id]
            item.track_id = track.id
            track.items.insert(assignment.position, item)
            reordered.append(item)

        if timing_mode in (TimingMode.SEQUENTIAL, TimingMode.PRESERVE_GAPS):
            layout_sequential(track.items, gap)

    return reordered


def reorder_timeline_assets(
    db: DBSession,
    project_id: UUID,
    reordering_type: ReorderingType,
    timing_mode: TimingMode,
    track_id: str | None = None,
    item_order: list[str] | None = None,
    track_assignments: list[TrackAssignment] | None = None,
    gap_duration: float | None = None,
) -> ReorderTimelineAssetsResponse:
    """
    Re-sequence timeline items and rewrite their timing.

    Args:
        db: Database session
        project_id: Project UUID
        reordering_type: ``within_track`` or ``across_tracks``
        timing_mode: How to retime items afterwards
        track_id: Track to reorder (within_track)
        item_order: Every item id of ``track_id`` in the new order (within_track)
        track_assignments: (item, target track, position) triples (across_tracks)
        gap_duration: Seconds between items for sequential layouts (default 0)

    Returns:
        ReorderTimelineAssetsResponse; ``conflicts_resolved`` lists overlaps
        found when timing was maintained, or is None if there were none.

    Raises:
        ProjectNotFoundError: If the project doesn't exist
        MissingRequiredFieldError: If the mode's required fields are absent
        ItemNotInTrackError: If ``item_order`` names items of another track
        InvalidReorderError: If ``item_order`` is not a permutation of the track
        TrackNotFoundError: If a named track doesn't exist
        TimelineItemNotFoundError: If an assignment names an unknown item
        InvalidRangeError: If ``gap_duration`` or a position is negative
    """
    project, timeline = load_timeline(db, project_id)

    gap = gap_duration if gap_duration is not None else 0.0
    if gap < 0:
        raise InvalidRangeError("Gap duration cannot be negative")

    if reordering_type == ReorderingType.WITHIN_TRACK:
        reordered = _reorder_within_track(timeline, track_id, item_order, timing_mode, gap)
    else:
        reordered = _reorder_across_tracks(timeline, track_assignments, timing_mode, gap)

    conflicts: list[str] = []
    if timing_mode == TimingMode.MAINTAIN_ORIGINAL:
        conflicts = detect_overlaps(timeline)

    timeline.recompute_duration()
    save_timeline(db, project, timeline)

    reorder_desc = _REORDER_DESCRIPTIONS[reordering_type]
    timing_desc = _TIMING_DESCRIPTIONS[timing_mode]
    logger.info(
        "Reordered %d items %s with %s in project %s",
        len(reordered),
        reorder_desc,
        timing_desc,
        project_id,
    )
    if conflicts:
        logger.warning("Overlaps left in project %s: %s", project_id, "; ".join(conflicts))

    suffix = ". Conflicts detected." if conflicts else "."
    return ReorderTimelineAssetsResponse(
        success=True,
        message=(
            f"Successfully reordered {len(reordered)} timeline items "
            f"{reorder_desc}, {timing_desc}{suffix}"
        ),
        reordered_items=[item.model_copy(deep=True) for item in reordered],
        conflicts_resolved=conflicts or None,
    )
