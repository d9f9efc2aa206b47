import logging
from uuid import UUID, uuid4

from sqlalchemy.orm import Session as DBSession

from database.models import Assets as AssetsModel
from models.timeline_models import (
    ModifyTimelineAssetResponse,
    Overlay,
    PlaceAssetResponse,
    PlacementOverlay,
    TimelineData,
    TimelineItem,
    Track,
    TrackType,
)
from operators.timeline_operator import (
    AssetMismatchError,
    AssetNotFoundError,
    InvalidRangeError,
    TimelineItemNotFoundError,
    TrackConflictError,
    TrackNotFoundError,
    load_timeline,
    save_timeline,
)


logger = logging.getLogger(__name__)

# Used when the asset carries no duration metadata
DEFAULT_ASSET_DURATION = 10.0

VOLUME_RANGE = (0.0, 2.0)
OPACITY_RANGE = (0.0, 1.0)


def format_seconds(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _new_item_id() -> str:
    return f"item-{uuid4().hex}"


def _validate_levels(volume: float | None, opacity: float | None) -> None:
    if volume is not None and not (VOLUME_RANGE[0] <= volume <= VOLUME_RANGE[1]):
        raise InvalidRangeError("Volume must be between 0.0 and 2.0")
    if opacity is not None and not (OPACITY_RANGE[0] <= opacity <= OPACITY_RANGE[1]):
        raise InvalidRangeError("Opacity must be between 0.0 and 1.0")


def _validate_timing(
    start_time: float,
    end_time: float,
    asset_start_time: float,
    asset_end_time: float,
) -> None:
    if start_time < 0:
        raise InvalidRangeError("Start time cannot be negative")
    if end_time <= start_time:
        raise InvalidRangeError("End time must be greater than start time")
    if asset_end_time <= asset_start_time:
        raise InvalidRangeError("Asset end time must be greater than asset start time")


def _get_project_asset(db: DBSession, project_id: UUID, asset_id: str) -> AssetsModel:
    try:
        asset_uuid = UUID(str(asset_id))
    except ValueError:
        raise AssetNotFoundError(asset_id)

    asset = db.query(AssetsModel).filter(AssetsModel.asset_id == asset_uuid).first()
    if not asset:
        raise AssetNotFoundError(asset_id)
    if asset.project_id != project_id:
        raise AssetMismatchError(asset_id, project_id)
    return asset


def find_or_create_track(
    timeline: TimelineData,
    track_type: TrackType,
    start_time: float,
    end_time: float,
    preferred_index: int | None = None,
    exclude_item_id: str | None = None,
) -> Track:
    """
    First-fit track search for ``[start_time, end_time)``.

    Tries the preferred ``{type}-{index}`` track, then every track of the
    type in stored order, and finally appends a new track of that type.
    """
    tracks_of_type = timeline.tracks_of_type(track_type)

    if preferred_index is not None:
        preferred_id = f"{track_type.value}-{preferred_index}"
        preferred = next((t for t in tracks_of_type if t.id == preferred_id), None)
        if preferred and not preferred.has_conflict(start_time, end_time, exclude_item_id):
            return preferred

    for track in tracks_of_type:
        if not track.has_conflict(start_time, end_time, exclude_item_id):
            return track

    return timeline.add_track(track_type)


def place_asset_on_timeline(
    db: DBSession,
    project_id: UUID,
    asset_id: str,
    start_time: float,
    track_type: TrackType,
    end_time: float | None = None,
    track_index: int | None = None,
    overlay: PlacementOverlay | None = None,
    volume: float | None = None,
    opacity: float | None = None,
    asset_start_time: float | None = None,
    asset_end_time: float | None = None,
) -> PlaceAssetResponse:
    project, timeline = load_timeline(db, project_id)
    asset = _get_project_asset(db, project_id, asset_id)
    _validate_levels(volume, opacity)

    asset_duration = asset.duration or DEFAULT_ASSET_DURATION
    effective_asset_start = asset_start_time if asset_start_time is not None else 0.0
    effective_asset_end = asset_end_time if asset_end_time is not None else asset_duration
    timeline_end = (
        end_time
        if end_time is not None
        else start_time + (effective_asset_end - effective_asset_start)
    )
    _validate_timing(start_time, timeline_end, effective_asset_start, effective_asset_end)

    track = find_or_create_track(
        timeline,
        track_type,
        start_time,
        timeline_end,
        preferred_index=track_index,
    )

    item = TimelineItem(
        id=_new_item_id(),
        asset_id=str(asset.asset_id),
        type=asset.asset_type,
        name=asset.asset_name,
        url=asset.asset_url,
        start_time=start_time,
        end_time=timeline_end,
        asset_start_time=effective_asset_start,
        asset_end_time=effective_asset_end,
        track_id=track.id,
        metadata=dict(asset.asset_metadata) if asset.asset_metadata else None,
        overlay=Overlay(**overlay.model_dump()) if overlay else None,
        volume=volume,
        opacity=opacity,
    )
    track.items.append(item)
    timeline.duration = max(timeline.duration, timeline_end)

    save_timeline(db, project, timeline)

    overlay_info = (
        f" with overlay positioning ({format_seconds(overlay.x)}, {format_seconds(overlay.y)})"
        if overlay
        else ""
    )
    trim_info = (
        f" (trimmed from {format_seconds(effective_asset_start)}s"
        f" to {format_seconds(effective_asset_end)}s)"
        if asset_start_time is not None or asset_end_time is not None
        else ""
    )
    logger.info(
        "Placed asset %s on timeline of project %s on %s%s%s",
        asset_id,
        project_id,
        track.name,
        overlay_info,
        trim_info,
    )

    return PlaceAssetResponse(
        timeline_item_id=item.id,
        track_id=track.id,
        message=(
            f'Successfully placed "{asset.asset_name}" on {track.name} '
            f"from {format_seconds(start_time)}s to {format_seconds(timeline_end)}s"
            f"{overlay_info}{trim_info}"
        ),
    )


def _resolve_move_target(
    timeline: TimelineData,
    item: TimelineItem,
    current_track: Track,
    start_time: float,
    end_time: float,
    move_to_track_id: str | None,
    move_to_track_type: TrackType | None,
) -> Track:
    if move_to_track_type is not None:
        return find_or_create_track(
            timeline,
            move_to_track_type,
            start_time,
            end_time,
            exclude_item_id=item.id,
        )

    if move_to_track_id is not None:
        target = timeline.get_track(move_to_track_id)
        if target is None:
            raise TrackNotFoundError(move_to_track_id)
        if target.has_conflict(start_time, end_time, exclude_item_id=item.id):
            raise TrackConflictError(move_to_track_id, item.id)
        return target

    retimed = (start_time, end_time) != (item.start_time, item.end_time)
    if retimed and current_track.has_conflict(start_time, end_time, exclude_item_id=item.id):
        raise TrackConflictError(current_track.id, item.id)
    return current_track


def modify_timeline_asset(
    db: DBSession,
    project_id: UUID,
    timeline_item_id: str,
    start_time: float | None = None,
    end_time: float | None = None,
    overlay: Overlay | None = None,
    volume: float | None = None,
    opacity: float | None = None,
    asset_start_time: float | None = None,
    asset_end_time: float | None = None,
    move_to_track_id: str | None = None,
    move_to_track_type: TrackType | None = None,
) -> ModifyTimelineAssetResponse:
    project, timeline = load_timeline(db, project_id)

    found = timeline.find_item(timeline_item_id)
    if found is None:
        raise TimelineItemNotFoundError(timeline_item_id)
    current_track, item = found

    _validate_levels(volume, opacity)

    new_start = start_time if start_time is not None else item.start_time
    new_end = end_time if end_time is not None else item.end_time
    new_asset_start = asset_start_time if asset_start_time is not None else item.asset_start_time
    new_asset_end = asset_end_time if asset_end_time is not None else item.asset_end_time
    _validate_timing(new_start, new_end, new_asset_start, new_asset_end)

    target_track = _resolve_move_target(
        timeline,
        item,
        current_track,
        new_start,
        new_end,
        move_to_track_id,
        move_to_track_type,
    )

    changes: list[str] = []

    if start_time is not None:
        item.start_time = new_start
        changes.append(f"start time: {format_seconds(new_start)}s")
    if end_time is not None:
        item.end_time = new_end
        changes.append(f"end time: {format_seconds(new_end)}s")
    if volume is not None:
        item.volume = volume
        changes.append(f"volume: {format_seconds(volume)}")
    if opacity is not None:
        item.opacity = opacity
        changes.append(f"opacity: {format_seconds(opacity)}")
    if asset_start_time is not None:
        item.asset_start_time = asset_start_time
        changes.append(f"asset start: {format_seconds(asset_start_time)}s")
    if asset_end_time is not None:
        item.asset_end_time = asset_end_time
        changes.append(f"asset end: {format_seconds(asset_end_time)}s")

    if overlay is not None and overlay.model_dump(exclude_none=True):
        if item.overlay is None:
            item.overlay = Overlay()
        for field_name, label, unit in (
            ("x", "overlay x", "px"),
            ("y", "overlay y", "px"),
            ("width", "overlay width", "px"),
            ("height", "overlay height", "px"),
            ("z_index", "overlay z-index", ""),
        ):
            value = getattr(overlay, field_name)
            if value is not None:
                setattr(item.overlay, field_name, value)
                changes.append(f"{label}: {format_seconds(value)}{unit}")

    if target_track.id != current_track.id:
        current_track.items = [i for i in current_track.items if i.id != item.id]
        item.track_id = target_track.id
        target_track.items.append(item)
        changes.append(f"moved to {target_track.name}")

    timeline.recompute_duration()
    save_timeline(db, project, timeline)

    change_description = ", ".join(changes) if changes else "no changes"
    logger.info(
        "Modified timeline item %s in project %s: %s",
        timeline_item_id,
        project_id,
        change_description,
    )

    return ModifyTimelineAssetResponse(
        success=True,
        message=f'Successfully modified "{item.name}": {change_description}',
        updated_item=item.model_copy(deep=True),
    )
