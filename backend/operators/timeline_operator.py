"""
Timeline Operator - loading, saving and project-level timeline settings.

The timeline of a project is a single JSON document on the project row.
Every mutation follows the same shape:

1. ``load_timeline`` locks the project row and parses the document
   (or builds the default two-track skeleton when none exists yet)
2. the caller validates its arguments and mutates the parsed value
3. ``save_timeline`` writes the whole document back in one commit

Nothing is written until step 3, so a failed validation never leaves a
partially updated timeline behind.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session as DBSession

from database.models import Project
from models.timeline_models import (
    COMPOSITION_FILTER_BOUNDS,
    CompositionFilters,
    TimelineData,
)


logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================


class TimelineError(Exception):
    """Base exception for timeline and story graph operations."""
    pass


class NotFoundError(TimelineError):
    """Base for every missing-record error."""
    pass


class ProjectNotFoundError(NotFoundError):
    def __init__(self, project_id: UUID):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class AssetNotFoundError(NotFoundError):
    def __init__(self, asset_id: UUID | str):
        self.asset_id = asset_id
        super().__init__(f"Asset with ID {asset_id} not found")


class TimelineItemNotFoundError(NotFoundError):
    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Timeline item with ID {item_id} not found")


class TrackNotFoundError(NotFoundError):
    def __init__(self, track_id: str):
        self.track_id = track_id
        super().__init__(f"Track {track_id} not found")


class NodeNotFoundError(NotFoundError):
    def __init__(self, node_id: UUID):
        self.node_id = node_id
        super().__init__(f"Node not found: {node_id}")


class EdgeNotFoundError(NotFoundError):
    def __init__(self, edge_id: UUID):
        self.edge_id = edge_id
        super().__init__(f"Edge not found: {edge_id}")


class InvalidRangeError(TimelineError):
    """Raised when a numeric argument is out of bounds or end <= start."""
    pass


class AssetMismatchError(TimelineError):
    """Raised when an asset is used outside the project that owns it."""
    def __init__(self, asset_id: UUID | str, project_id: UUID):
        self.asset_id = asset_id
        self.project_id = project_id
        super().__init__("Asset does not belong to this project")


class InvalidReorderError(TimelineError):
    """Raised when a reorder request cannot be applied as given."""
    pass


class MissingRequiredFieldError(InvalidReorderError):
    pass


class ItemNotInTrackError(InvalidReorderError):
    def __init__(self, track_id: str, item_ids: list[str]):
        self.track_id = track_id
        self.item_ids = item_ids
        super().__init__(f"Items not found in track {track_id}: {', '.join(item_ids)}")


class TrackConflictError(TimelineError):
    """
    Raised when an item cannot land on a track because another item
    already occupies part of its interval.
    """
    def __init__(self, track_id: str, item_id: str):
        self.track_id = track_id
        self.item_id = item_id
        super().__init__(f"Cannot move to track {track_id}: time conflict detected")


# =============================================================================
# LOAD / SAVE
# =============================================================================


def get_project_for_update(db: DBSession, project_id: UUID) -> Project:
    """
    Fetch the project row, locking it until the surrounding transaction ends.

    Raises:
        ProjectNotFoundError: If the project doesn't exist
    """
    project = (
        db.query(Project)
        .filter(Project.project_id == project_id)
        .with_for_update()
        .first()
    )
    if not project:
        raise ProjectNotFoundError(project_id)
    return project


def load_timeline(db: DBSession, project_id: UUID) -> tuple[Project, TimelineData]:
    """
    Load a project's timeline for modification.

    Returns the locked project row together with a freshly parsed
    ``TimelineData``. The parsed value is owned by the caller; nothing is
    persisted until it is handed to ``save_timeline``.

    Raises:
        ProjectNotFoundError: If the project doesn't exist
    """
    project = get_project_for_update(db, project_id)
    return project, TimelineData.from_document(project.timeline_data)


def save_timeline(db: DBSession, project: Project, timeline: TimelineData) -> None:
    """Write the whole timeline document back and commit."""
    project.timeline_data = timeline.to_document()
    project.updated_at = datetime.now(timezone.utc)
    db.commit()


def get_timeline(db: DBSession, project_id: UUID) -> TimelineData:
    """
    Read-only view of a project's timeline (default skeleton if none stored).

    Raises:
        ProjectNotFoundError: If the project doesn't exist
    """
    project = db.query(Project).filter(Project.project_id == project_id).first()
    if not project:
        raise ProjectNotFoundError(project_id)
    return TimelineData.from_document(project.timeline_data)


# =============================================================================
# COMPOSITION FILTERS
# =============================================================================


def validate_composition_filters(filters: CompositionFilters) -> None:
    """
    Check every supplied filter against its inclusive bounds.

    Raises:
        InvalidRangeError: On the first filter outside its bounds
    """
    for field_name, (low, high, message) in COMPOSITION_FILTER_BOUNDS.items():
        value = getattr(filters, field_name)
        if value is not None and (value < low or value > high):
            raise InvalidRangeError(message)


def apply_composition_filters(
    db: DBSession,
    project_id: UUID,
    filters: CompositionFilters,
) -> CompositionFilters:
    """
    Replace the project's composition filters with ``filters``.

    Raises:
        ProjectNotFoundError: If the project doesn't exist
        InvalidRangeError: If any filter is outside its bounds
    """
    project, timeline = load_timeline(db, project_id)
    validate_composition_filters(filters)

    timeline.composition_filters = filters.model_copy()
    save_timeline(db, project, timeline)

    logger.info(
        "Applied composition filters to project %s: %s",
        project_id,
        filters.model_dump(exclude_none=True),
    )
    return timeline.composition_filters


def clear_composition_filters(db: DBSession, project_id: UUID) -> None:
    """
    Remove every composition filter from the project.

    Raises:
        ProjectNotFoundError: If the project doesn't exist
    """
    project, timeline = load_timeline(db, project_id)
    timeline.composition_filters = None
    save_timeline(db, project, timeline)

    logger.info("Cleared composition filters for project %s", project_id)
