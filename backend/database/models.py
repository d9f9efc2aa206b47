from uuid import uuid4
from sqlalchemy import (
    JSON,
    Column,
    String,
    DateTime,
    Index,
    ForeignKey,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from database.base import Base

# JSONB on PostgreSQL, plain JSON everywhere else (SQLite in tests)
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class Project(Base):
    """
    A video project.

    The whole timeline (tracks, items, duration, composition filters) lives
    in ``timeline_data`` as a single JSON document that is always read and
    written as one unit. ``None`` means the timeline has never been touched.
    """

    __tablename__ = "projects"

    project_id = Column(
        Uuid, unique=True, index=True, nullable=False, primary_key=True, default=uuid4
    )
    project_name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    status = Column(String, nullable=False, default="draft")  # draft, in-progress, completed
    timeline_data = Column(JSONDocument, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (Index("ix_projects_status", status),)

    def __repr__(self):
        return f"<Project project_id={self.project_id} project_name={self.project_name} status={self.status}>"


class Assets(Base):
    __tablename__ = "assets"

    asset_id = Column(
        Uuid, unique=True, index=True, nullable=False, primary_key=True, default=uuid4
    )
    project_id = Column(
        Uuid, ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False
    )
    asset_name = Column(String, nullable=False)
    asset_type = Column(String, nullable=False)  # video, audio, image, text, other
    asset_category = Column(String, nullable=False, default="upload")  # upload, artifact
    asset_url = Column(String, nullable=False)
    asset_key = Column(String, nullable=False)  # storage key
    asset_description = Column(String, nullable=True)

    # duration, width, height, size, mimeType
    asset_metadata = Column(JSONDocument, nullable=True)
    uploaded_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_assets_project_id", project_id),
        Index("ix_assets_asset_key", asset_key),
    )

    @property
    def duration(self) -> float | None:
        if not self.asset_metadata:
            return None
        return self.asset_metadata.get("duration")

    def __repr__(self):
        return f"<Assets asset_id={self.asset_id} asset_name={self.asset_name} asset_type={self.asset_type} project_id={self.project_id}>"


# =============================================================================
# STORY GRAPH
# =============================================================================


class Node(Base):
    """
    A node in the project's story graph.

    Exactly one node per project is expected to carry ``node_type="starting"``;
    the main path is walked from it.
    """

    __tablename__ = "nodes"

    node_id = Column(
        Uuid, unique=True, index=True, nullable=False, primary_key=True, default=uuid4
    )
    project_id = Column(
        Uuid, ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False
    )
    node_type = Column(
        String, nullable=False
    )  # starting, draft, videoAsset, imageAsset, generatingAsset
    position = Column(JSONDocument, nullable=False)  # {"x": float, "y": float}
    data = Column(JSONDocument, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_nodes_project_id", project_id),
        Index("ix_nodes_project_type", project_id, node_type),
    )

    def __repr__(self):
        return f"<Node node_id={self.node_id} node_type={self.node_type} project_id={self.project_id}>"


class Edge(Base):
    """Directed connection between two nodes; at most one per (source, target)."""

    __tablename__ = "edges"

    edge_id = Column(
        Uuid, unique=True, index=True, nullable=False, primary_key=True, default=uuid4
    )
    project_id = Column(
        Uuid, ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False
    )
    source_node_id = Column(
        Uuid, ForeignKey("nodes.node_id", ondelete="CASCADE"), nullable=False
    )
    target_node_id = Column(
        Uuid, ForeignKey("nodes.node_id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_edges_project_id", project_id),
        Index("ix_edges_source_node_id", source_node_id),
        Index("ix_edges_target_node_id", target_node_id),
        Index(
            "ix_edges_source_target",
            source_node_id,
            target_node_id,
            unique=True,
        ),
    )

    def __repr__(self):
        return (
            f"<Edge edge_id={self.edge_id} "
            f"source_node_id={self.source_node_id} "
            f"target_node_id={self.target_node_id}>"
        )
