"""initial_schema

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "1a2b3c4d5e6f"
down_revision = None
branch_labels = None
depends_on = None

JSONDocument = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("project_name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        # Whole timeline document (tracks, items, duration, filters)
        sa.Column("timeline_data", JSONDocument, nullable=True),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("project_id"),
    )
    op.create_index(
        op.f("ix_projects_project_id"), "projects", ["project_id"], unique=True
    )
    op.create_index("ix_projects_status", "projects", ["status"], unique=False)

    op.create_table(
        "assets",
        sa.Column("asset_id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("asset_name", sa.String(), nullable=False),
        sa.Column("asset_type", sa.String(), nullable=False),
        sa.Column("asset_category", sa.String(), nullable=False),
        sa.Column("asset_url", sa.String(), nullable=False),
        sa.Column("asset_key", sa.String(), nullable=False),
        sa.Column("asset_description", sa.String(), nullable=True),
        sa.Column("asset_metadata", JSONDocument, nullable=True),
        sa.Column(
            "uploaded_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(
            ["project_id"], ["projects.project_id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("asset_id"),
    )
    op.create_index(op.f("ix_assets_asset_id"), "assets", ["asset_id"], unique=True)
    op.create_index("ix_assets_project_id", "assets", ["project_id"], unique=False)
    op.create_index("ix_assets_asset_key", "assets", ["asset_key"], unique=False)

    op.create_table(
        "nodes",
        sa.Column("node_id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("node_type", sa.String(), nullable=False),
        sa.Column("position", JSONDocument, nullable=False),
        sa.Column("data", JSONDocument, nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(
            ["project_id"], ["projects.project_id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("node_id"),
    )
    op.create_index(op.f("ix_nodes_node_id"), "nodes", ["node_id"], unique=True)
    op.create_index("ix_nodes_project_id", "nodes", ["project_id"], unique=False)
    op.create_index(
        "ix_nodes_project_type", "nodes", ["project_id", "node_type"], unique=False
    )

    op.create_table(
        "edges",
        sa.Column("edge_id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("source_node_id", sa.Uuid(), nullable=False),
        sa.Column("target_node_id", sa.Uuid(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
        sa.ForeignKeyConstraint(
            ["project_id"], ["projects.project_id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["source_node_id"], ["nodes.node_id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["target_node_id"], ["nodes.node_id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("edge_id"),
    )
    op.create_index(op.f("ix_edges_edge_id"), "edges", ["edge_id"], unique=True)
    op.create_index("ix_edges_project_id", "edges", ["project_id"], unique=False)
    op.create_index(
        "ix_edges_source_node_id", "edges", ["source_node_id"], unique=False
    )
    op.create_index(
        "ix_edges_target_node_id", "edges", ["target_node_id"], unique=False
    )
    op.create_index(
        "ix_edges_source_target",
        "edges",
        ["source_node_id", "target_node_id"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("ix_edges_source_target", table_name="edges")
    op.drop_index("ix_edges_target_node_id", table_name="edges")
    op.drop_index("ix_edges_source_node_id", table_name="edges")
    op.drop_index("ix_edges_project_id", table_name="edges")
    op.drop_index(op.f("ix_edges_edge_id"), table_name="edges")
    op.drop_table("edges")

    op.drop_index("ix_nodes_project_type", table_name="nodes")
    op.drop_index("ix_nodes_project_id", table_name="nodes")
    op.drop_index(op.f("ix_nodes_node_id"), table_name="nodes")
    op.drop_table("nodes")

    op.drop_index("ix_assets_asset_key", table_name="assets")
    op.drop_index("ix_assets_project_id", table_name="assets")
    op.drop_index(op.f("ix_assets_asset_id"), table_name="assets")
    op.drop_table("assets")

    op.drop_index("ix_projects_status", table_name="projects")
    op.drop_index(op.f("ix_projects_project_id"), table_name="projects")
    op.drop_table("projects")
