import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session as DBSession

from database.models import Assets
from operators.timeline_operator import AssetNotFoundError


logger = logging.getLogger(__name__)

ASSET_TYPES = ("video", "audio", "image", "text", "other")
ASSET_CATEGORIES = ("upload", "artifact")


def create_asset(
    db: DBSession,
    project_id: UUID,
    asset_name: str,
    asset_type: str,
    asset_url: str,
    asset_key: str,
    asset_category: str = "upload",
    asset_description: str | None = None,
    asset_metadata: dict[str, Any] | None = None,
) -> Assets:
    asset = Assets(
        project_id=project_id,
        asset_name=asset_name,
        asset_type=asset_type,
        asset_category=asset_category,
        asset_url=asset_url,
        asset_key=asset_key,
        asset_description=asset_description,
        asset_metadata=asset_metadata,
        uploaded_at=datetime.now(timezone.utc),
    )
    db.add(asset)
    db.commit()
    db.refresh(asset)

    logger.info("Created %s asset %s in project %s", asset_type, asset.asset_id, project_id)
    return asset


def get_asset(db: DBSession, project_id: UUID, asset_id: UUID) -> Assets:
    asset = (
        db.query(Assets)
        .filter(Assets.project_id == project_id, Assets.asset_id == asset_id)
        .first()
    )
    if not asset:
        raise AssetNotFoundError(asset_id)
    return asset


def get_asset_by_key(db: DBSession, asset_key: str) -> Assets | None:
    return db.query(Assets).filter(Assets.asset_key == asset_key).first()


def list_assets(
    db: DBSession,
    project_id: UUID,
    asset_type: str | None = None,
) -> list[Assets]:
    query = db.query(Assets).filter(Assets.project_id == project_id)
    if asset_type is not None:
        query = query.filter(Assets.asset_type == asset_type)
    return query.order_by(Assets.uploaded_at.desc()).all()


def update_asset(
    db: DBSession,
    project_id: UUID,
    asset_id: UUID,
    asset_name: str | None = None,
    asset_metadata: dict[str, Any] | None = None,
) -> Assets:
    """
    Rename an asset and/or replace its metadata.

    Timeline items keep the name and metadata they copied at placement.
    """
    asset = get_asset(db, project_id, asset_id)
    if asset_name is not None:
        asset.asset_name = asset_name
    if asset_metadata is not None:
        asset.asset_metadata = asset_metadata
    db.commit()
    db.refresh(asset)
    return asset


def delete_asset(db: DBSession, project_id: UUID, asset_id: UUID) -> None:
    asset = get_asset(db, project_id, asset_id)
    db.delete(asset)
    db.commit()
    logger.info("Deleted asset %s from project %s", asset_id, project_id)
