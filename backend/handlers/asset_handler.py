from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.base import get_db
from database.models import Assets, Project
from dependencies.project import require_project
from handlers.errors import handle_operator_error
from models.api_models import (
    AssetCreateRequest,
    AssetDeleteResponse,
    AssetGetResponse,
    AssetListResponse,
    AssetResponse,
    AssetType,
    AssetUpdateRequest,
)
from operators.asset_operator import (
    create_asset,
    delete_asset,
    get_asset,
    list_assets,
    update_asset,
)

router = APIRouter(prefix="/projects/{project_id}/assets", tags=["assets"])


def _asset_to_response(asset: Assets) -> AssetResponse:
    return AssetResponse(
        asset_id=str(asset.asset_id),
        project_id=str(asset.project_id),
        asset_name=asset.asset_name,
        asset_type=asset.asset_type,
        asset_category=asset.asset_category,
        asset_url=asset.asset_url,
        asset_key=asset.asset_key,
        asset_description=asset.asset_description,
        asset_metadata=asset.asset_metadata,
        uploaded_at=asset.uploaded_at,
    )


@router.get("/", response_model=AssetListResponse)
async def assets_list(
    type: AssetType | None = Query(default=None),
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    assets = list_assets(db, project.project_id, asset_type=type)
    return AssetListResponse(
        ok=True,
        assets=[_asset_to_response(a) for a in assets],
    )


@router.post("/", response_model=AssetGetResponse)
async def asset_create(
    request: AssetCreateRequest,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    metadata = (
        request.metadata.model_dump(by_alias=True, exclude_none=True)
        if request.metadata
        else None
    )
    try:
        asset = create_asset(
            db,
            project.project_id,
            asset_name=request.name,
            asset_type=request.type,
            asset_url=request.url,
            asset_key=request.key,
            asset_category=request.category,
            asset_description=request.description,
            asset_metadata=metadata,
        )
    except Exception as e:
        handle_operator_error(e, db, f"create asset in project {project.project_id}")

    return AssetGetResponse(ok=True, asset=_asset_to_response(asset))


@router.get("/{asset_id}", response_model=AssetGetResponse)
async def asset_get(
    asset_id: UUID,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    try:
        asset = get_asset(db, project.project_id, asset_id)
    except Exception as e:
        handle_operator_error(e, db, f"load asset {asset_id}")

    return AssetGetResponse(ok=True, asset=_asset_to_response(asset))


@router.patch("/{asset_id}", response_model=AssetGetResponse)
async def asset_update(
    asset_id: UUID,
    request: AssetUpdateRequest,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    metadata = (
        request.metadata.model_dump(by_alias=True, exclude_none=True)
        if request.metadata
        else None
    )
    try:
        asset = update_asset(
            db,
            project.project_id,
            asset_id,
            asset_name=request.name,
            asset_metadata=metadata,
        )
    except Exception as e:
        handle_operator_error(e, db, f"update asset {asset_id}")

    return AssetGetResponse(ok=True, asset=_asset_to_response(asset))


@router.delete("/{asset_id}", response_model=AssetDeleteResponse)
async def asset_delete(
    asset_id: UUID,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    try:
        delete_asset(db, project.project_id, asset_id)
    except Exception as e:
        handle_operator_error(e, db, f"delete asset {asset_id}")

    return AssetDeleteResponse(ok=True)
