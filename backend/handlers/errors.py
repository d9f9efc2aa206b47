import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from operators.timeline_operator import (
    AssetMismatchError,
    InvalidRangeError,
    InvalidReorderError,
    NotFoundError,
    TrackConflictError,
)


logger = logging.getLogger(__name__)


def handle_operator_error(e: Exception, db: Session, action: str):
    """
    Roll back the session and convert an operator exception to an HTTP error.

    Always raises.
    """
    db.rollback()
    if isinstance(e, HTTPException):
        raise e
    if isinstance(e, NotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    elif isinstance(e, (InvalidRangeError, AssetMismatchError, InvalidReorderError)):
        raise HTTPException(status_code=400, detail=str(e))
    elif isinstance(e, TrackConflictError):
        raise HTTPException(
            status_code=409,
            detail={
                "error": "track_conflict",
                "track_id": e.track_id,
                "item_id": e.item_id,
                "message": str(e),
            },
        )
    else:
        logger.exception("Failed to %s", action)
        raise HTTPException(status_code=500, detail=f"Failed to {action}")
