from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from models.timeline_models import CamelModel


ProjectStatus = Literal["draft", "in-progress", "completed"]
AssetType = Literal["video", "audio", "image", "text", "other"]
AssetCategory = Literal["upload", "artifact"]
NodeType = Literal["starting", "draft", "videoAsset", "imageAsset", "generatingAsset"]


# =============================================================================
# PROJECTS
# =============================================================================


class ProjectCreateRequest(CamelModel):
    name: str
    description: str | None = None
    status: ProjectStatus | None = None


class ProjectUpdateRequest(CamelModel):
    name: str | None = None
    description: str | None = None
    status: ProjectStatus | None = None


class ProjectResponse(CamelModel):
    project_id: str
    project_name: str
    description: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime


class ProjectGetResponse(CamelModel):
    ok: bool
    project: ProjectResponse


class ProjectListResponse(CamelModel):
    ok: bool
    projects: list[ProjectResponse]


class ProjectDeleteResponse(CamelModel):
    ok: bool


# =============================================================================
# ASSETS
# =============================================================================


class AssetMetadata(CamelModel):
    duration: float | None = None
    width: int | None = None
    height: int | None = None
    size: int | None = None
    mime_type: str | None = None


class AssetCreateRequest(CamelModel):
    name: str
    type: AssetType
    category: AssetCategory = "upload"
    url: str
    key: str
    description: str | None = None
    metadata: AssetMetadata | None = None


class AssetUpdateRequest(CamelModel):
    name: str | None = None
    metadata: AssetMetadata | None = None


class AssetResponse(CamelModel):
    asset_id: str
    project_id: str
    asset_name: str
    asset_type: str
    asset_category: str
    asset_url: str
    asset_key: str
    asset_description: str | None = None
    asset_metadata: dict[str, Any] | None = None
    uploaded_at: datetime


class AssetGetResponse(CamelModel):
    ok: bool
    asset: AssetResponse


class AssetListResponse(CamelModel):
    ok: bool
    assets: list[AssetResponse]


class AssetDeleteResponse(CamelModel):
    ok: bool


# =============================================================================
# STORY GRAPH
# =============================================================================


class NodePosition(CamelModel):
    x: float
    y: float


class NodeCreateRequest(CamelModel):
    type: NodeType
    position: NodePosition
    data: dict[str, Any] = Field(default_factory=dict)
    auto_link: bool = Field(
        default=False,
        description="Append the new node to the end of the main path",
    )


class NodePositionUpdateRequest(CamelModel):
    position: NodePosition


class NodeDataUpdateRequest(CamelModel):
    data: dict[str, Any]


class NodeResponse(CamelModel):
    node_id: str
    project_id: str
    type: str
    position: NodePosition
    data: dict[str, Any]
    created_at: datetime


class NodeGetResponse(CamelModel):
    ok: bool
    node: NodeResponse


class NodeListResponse(CamelModel):
    ok: bool
    nodes: list[NodeResponse]


class NodeDeleteResponse(CamelModel):
    ok: bool


class EdgeCreateRequest(CamelModel):
    source_node_id: str
    target_node_id: str


class EdgeResponse(CamelModel):
    edge_id: str
    project_id: str
    source_node_id: str
    target_node_id: str
    created_at: datetime


class EdgeGetResponse(CamelModel):
    ok: bool
    edge: EdgeResponse


class EdgeListResponse(CamelModel):
    ok: bool
    edges: list[EdgeResponse]


class EdgeDeleteResponse(CamelModel):
    ok: bool


class AutoLinkRequest(CamelModel):
    node_id: str


class AutoLinkResponse(CamelModel):
    ok: bool
    edge: EdgeResponse | None = None


class TimelinePathResponse(CamelModel):
    ok: bool
    nodes: list[NodeResponse]


class GraphNodeResponse(CamelModel):
    ok: bool
    node: NodeResponse | None = None


class HealthResponse(CamelModel):
    ok: bool
    database: str
