"""
Timeline Handler - REST API endpoints for timeline editing.

Every mutation locks the project row, validates, and writes the whole
timeline document back in one commit. Validation failures return 400,
missing records 404, and explicit track moves that would overlap 409:

{
    "detail": {
        "error": "track_conflict",
        "track_id": "video-1",
        "item_id": "item-...",
        "message": "Cannot move to track video-1: time conflict detected"
    }
}
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.base import get_db
from database.models import Project
from dependencies.project import require_project
from handlers.errors import handle_operator_error
from models.timeline_models import (
    ApplyCompositionFiltersRequest,
    FiltersMutationResponse,
    ModifyTimelineAssetRequest,
    ModifyTimelineAssetResponse,
    PlaceAssetRequest,
    PlaceAssetResponse,
    ReorderTimelineAssetsRequest,
    ReorderTimelineAssetsResponse,
    TimelineResponse,
)
from operators.timeline_editor import modify_timeline_asset, place_asset_on_timeline
from operators.timeline_operator import (
    apply_composition_filters,
    clear_composition_filters,
    get_timeline,
)
from operators.timeline_reorder import reorder_timeline_assets


router = APIRouter(prefix="/projects/{project_id}/timeline", tags=["timeline"])


@router.get("", response_model=TimelineResponse)
async def timeline_get(
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    """Current timeline, or the default two-track skeleton if never edited."""
    try:
        timeline = get_timeline(db, project.project_id)
    except Exception as e:
        handle_operator_error(e, db, f"load timeline for project {project.project_id}")

    return TimelineResponse(
        ok=True,
        project_id=str(project.project_id),
        timeline=timeline,
    )


# =============================================================================
# COMPOSITION FILTERS
# =============================================================================


@router.put("/filters", response_model=FiltersMutationResponse)
async def timeline_apply_filters(
    request: ApplyCompositionFiltersRequest,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    """Replace the project's composition filters."""
    try:
        filters = apply_composition_filters(db, project.project_id, request.filters)
    except Exception as e:
        handle_operator_error(e, db, f"apply filters to project {project.project_id}")

    return FiltersMutationResponse(ok=True, composition_filters=filters)


@router.delete("/filters", response_model=FiltersMutationResponse)
async def timeline_clear_filters(
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    try:
        clear_composition_filters(db, project.project_id)
    except Exception as e:
        handle_operator_error(e, db, f"clear filters for project {project.project_id}")

    return FiltersMutationResponse(ok=True, composition_filters=None)


# =============================================================================
# ITEMS
# =============================================================================


@router.post("/items", response_model=PlaceAssetResponse)
async def timeline_place_asset(
    request: PlaceAssetRequest,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    """
    Place an asset on the first free track of the requested type.

    A new track is appended when every existing track of that type is busy
    over the requested interval.
    """
    try:
        return place_asset_on_timeline(
            db=db,
            project_id=project.project_id,
            asset_id=request.asset_id,
            start_time=request.start_time,
            track_type=request.track_type,
            end_time=request.end_time,
            track_index=request.track_index,
            overlay=request.overlay,
            volume=request.volume,
            opacity=request.opacity,
            asset_start_time=request.asset_start_time,
            asset_end_time=request.asset_end_time,
        )
    except Exception as e:
        handle_operator_error(e, db, f"place asset on project {project.project_id}")


@router.patch("/items/{item_id}", response_model=ModifyTimelineAssetResponse)
async def timeline_modify_item(
    item_id: str,
    request: ModifyTimelineAssetRequest,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    try:
        return modify_timeline_asset(
            db=db,
            project_id=project.project_id,
            timeline_item_id=item_id,
            start_time=request.start_time,
            end_time=request.end_time,
            overlay=request.overlay,
            volume=request.volume,
            opacity=request.opacity,
            asset_start_time=request.asset_start_time,
            asset_end_time=request.asset_end_time,
            move_to_track_id=request.move_to_track_id,
            move_to_track_type=request.move_to_track_type,
        )
    except Exception as e:
        handle_operator_error(e, db, f"modify timeline item {item_id}")


@router.post("/reorder", response_model=ReorderTimelineAssetsResponse)
async def timeline_reorder(
    request: ReorderTimelineAssetsRequest,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    try:
        return reorder_timeline_assets(
            db=db,
            project_id=project.project_id,
            reordering_type=request.reordering_type,
            timing_mode=request.timing_mode,
            track_id=request.track_id,
            item_order=request.item_order,
            track_assignments=request.track_assignments,
            gap_duration=request.gap_duration,
        )
    except Exception as e:
        handle_operator_error(e, db, f"reorder timeline of project {project.project_id}")
