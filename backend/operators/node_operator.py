import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session as DBSession

from database.models import Node
from operators.edge_operator import remove_all_edges_for_node
from operators.timeline_operator import NodeNotFoundError


logger = logging.getLogger(__name__)

NODE_TYPES = ("starting", "draft", "videoAsset", "imageAsset", "generatingAsset")


def create_node(
    db: DBSession,
    project_id: UUID,
    node_type: str,
    position: dict[str, float],
    data: dict[str, Any] | None = None,
    commit: bool = True,
) -> Node:
    """Create a node. With ``commit=False`` it is only flushed."""
    node = Node(
        project_id=project_id,
        node_type=node_type,
        position={"x": position["x"], "y": position["y"]},
        data=data if data is not None else {},
        created_at=datetime.now(timezone.utc),
    )
    db.add(node)
    if commit:
        db.commit()
        db.refresh(node)
    else:
        db.flush()

    logger.info("Created %s node %s in project %s", node_type, node.node_id, project_id)
    return node


def list_nodes(db: DBSession, project_id: UUID) -> list[Node]:
    return (
        db.query(Node)
        .filter(Node.project_id == project_id)
        .order_by(Node.created_at)
        .all()
    )


def get_node(db: DBSession, node_id: UUID, project_id: UUID | None = None) -> Node:
    query = db.query(Node).filter(Node.node_id == node_id)
    if project_id is not None:
        query = query.filter(Node.project_id == project_id)
    node = query.first()
    if not node:
        raise NodeNotFoundError(node_id)
    return node


def update_node_position(
    db: DBSession,
    node_id: UUID,
    position: dict[str, float],
    project_id: UUID | None = None,
) -> Node:
    node = get_node(db, node_id, project_id)
    node.position = {"x": position["x"], "y": position["y"]}
    db.commit()
    db.refresh(node)
    return node


def update_node_data(
    db: DBSession,
    node_id: UUID,
    data: dict[str, Any],
    project_id: UUID | None = None,
) -> Node:
    """Replace the node's data wholesale."""
    node = get_node(db, node_id, project_id)
    node.data = data
    db.commit()
    db.refresh(node)
    return node


def remove_node(db: DBSession, node_id: UUID, project_id: UUID | None = None) -> None:
    """
    Delete a node together with every edge that touches it.

    Edges go first so the graph never holds an edge to a missing node.
    """
    node = get_node(db, node_id, project_id)
    remove_all_edges_for_node(db, node.node_id, commit=False)
    db.delete(node)
    db.commit()

    logger.info("Removed node %s from project %s", node_id, node.project_id)
