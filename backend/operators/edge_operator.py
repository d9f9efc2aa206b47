"""
Edge Operator - story graph connections and main-path traversal.

The "main path" of a project is never stored. It is recomputed on demand
by walking from the project's starting node along outgoing edges for as
long as each node has exactly one successor. A node with no outgoing edge
(dead end) or several (branch) ends the path.

A walk is a sequence of independent reads; if a node or edge disappears
mid-walk the path simply ends early. The walk also stops before revisiting
a node and never takes more hops than the project has nodes, so a cyclic
edge set cannot loop forever.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from database.models import Edge, Node
from operators.timeline_operator import (
    EdgeNotFoundError,
    NodeNotFoundError,
    get_project_for_update,
)


logger = logging.getLogger(__name__)

STARTING_NODE_TYPE = "starting"


def _get_project_node(db: DBSession, project_id: UUID, node_id: UUID) -> Node:
    node = (
        db.query(Node)
        .filter(Node.node_id == node_id, Node.project_id == project_id)
        .first()
    )
    if not node:
        raise NodeNotFoundError(node_id)
    return node


# =============================================================================
# EDGE CRUD
# =============================================================================


def _find_edge(
    db: DBSession, project_id: UUID, source_node_id: UUID, target_node_id: UUID
) -> Edge | None:
    return (
        db.query(Edge)
        .filter(
            Edge.project_id == project_id,
            Edge.source_node_id == source_node_id,
            Edge.target_node_id == target_node_id,
        )
        .first()
    )


def create_edge(
    db: DBSession,
    project_id: UUID,
    source_node_id: UUID,
    target_node_id: UUID,
    commit: bool = True,
) -> Edge:
    """
    Connect ``source_node_id`` to ``target_node_id``.

    Idempotent: if the two nodes are already connected in that direction
    the existing edge is returned and nothing is inserted. The project row
    is locked first, so graph writes on one project are serialized. A
    writer that bypasses the lock and inserts the same pair first makes the
    insert hit the unique (source, target) index; that edge is returned.

    With ``commit=False`` the edge is only flushed and the caller owns the
    transaction. A unique-index violation is then re-raised, since rolling
    back here would discard the caller's pending work.

    Raises:
        ProjectNotFoundError: If the project doesn't exist
        NodeNotFoundError: If either node is missing from the project
    """
    get_project_for_update(db, project_id)

    existing = _find_edge(db, project_id, source_node_id, target_node_id)
    if existing:
        return existing

    _get_project_node(db, project_id, source_node_id)
    _get_project_node(db, project_id, target_node_id)

    edge = Edge(
        project_id=project_id,
        source_node_id=source_node_id,
        target_node_id=target_node_id,
        created_at=datetime.now(timezone.utc),
    )
    db.add(edge)
    try:
        db.flush()
    except IntegrityError:
        if not commit:
            raise
        db.rollback()
        existing = _find_edge(db, project_id, source_node_id, target_node_id)
        if existing is None:
            raise
        logger.info(
            "Edge %s -> %s was created concurrently in project %s; reusing %s",
            source_node_id,
            target_node_id,
            project_id,
            existing.edge_id,
        )
        return existing

    if commit:
        db.commit()
        db.refresh(edge)

    logger.info(
        "Created edge %s: %s -> %s in project %s",
        edge.edge_id,
        source_node_id,
        target_node_id,
        project_id,
    )
    return edge


def list_edges_by_project(db: DBSession, project_id: UUID) -> list[Edge]:
    return (
        db.query(Edge)
        .filter(Edge.project_id == project_id)
        .order_by(Edge.created_at)
        .all()
    )


def get_outgoing_edges(db: DBSession, node_id: UUID) -> list[Edge]:
    return (
        db.query(Edge)
        .filter(Edge.source_node_id == node_id)
        .order_by(Edge.created_at)
        .all()
    )


def get_incoming_edges(db: DBSession, node_id: UUID) -> list[Edge]:
    return (
        db.query(Edge)
        .filter(Edge.target_node_id == node_id)
        .order_by(Edge.created_at)
        .all()
    )


def remove_edge(db: DBSession, edge_id: UUID, project_id: UUID | None = None) -> None:
    query = db.query(Edge).filter(Edge.edge_id == edge_id)
    if project_id is not None:
        query = query.filter(Edge.project_id == project_id)
    edge = query.first()
    if not edge:
        raise EdgeNotFoundError(edge_id)

    db.delete(edge)
    db.commit()
    logger.info("Removed edge %s", edge_id)


def remove_all_edges_for_node(db: DBSession, node_id: UUID, commit: bool = True) -> int:
    """
    Delete every edge where ``node_id`` is the source or the target.

    Returns the number of edges removed.
    """
    edges = (
        db.query(Edge)
        .filter(or_(Edge.source_node_id == node_id, Edge.target_node_id == node_id))
        .all()
    )
    for edge in edges:
        db.delete(edge)
    if commit:
        db.commit()
    else:
        db.flush()

    logger.info("Removed %d edge(s) attached to node %s", len(edges), node_id)
    return len(edges)


# =============================================================================
# MAIN PATH TRAVERSAL
# =============================================================================


def get_starting_node(db: DBSession, project_id: UUID) -> Node | None:
    return (
        db.query(Node)
        .filter(Node.project_id == project_id, Node.node_type == STARTING_NODE_TYPE)
        .order_by(Node.created_at)
        .first()
    )


def get_timeline_path(db: DBSession, project_id: UUID) -> list[Node]:
    """
    Main path of the project: the starting node followed by every node
    reachable through single-successor edges.

    Returns an empty list when the project has no starting node.
    """
    starting_node = get_starting_node(db, project_id)
    if not starting_node:
        return []

    max_hops = db.query(Node).filter(Node.project_id == project_id).count()
    path = [starting_node]
    visited = {starting_node.node_id}
    current = starting_node

    while len(path) <= max_hops:
        outgoing = get_outgoing_edges(db, current.node_id)
        if len(outgoing) != 1:
            break

        next_node = db.get(Node, outgoing[0].target_node_id)
        if not next_node:
            break
        if next_node.node_id in visited:
            logger.warning(
                "Cycle detected in project %s at node %s; main path truncated",
                project_id,
                next_node.node_id,
            )
            break

        path.append(next_node)
        visited.add(next_node.node_id)
        current = next_node

    return path


def get_last_timeline_node(db: DBSession, project_id: UUID) -> Node | None:
    path = get_timeline_path(db, project_id)
    if not path:
        return None
    return path[-1]


def auto_link_to_timeline(
    db: DBSession,
    project_id: UUID,
    new_node_id: UUID,
    commit: bool = True,
) -> Edge | None:
    """
    Append ``new_node_id`` to the end of the main path.

    The project row is locked before the path is walked, so two concurrent
    appends cannot both link after the same last node and split the path.

    Returns the connecting edge, or None when the project has no main path
    yet (no starting node) or the node already ends the path.

    Raises:
        ProjectNotFoundError: If the project doesn't exist
        NodeNotFoundError: If ``new_node_id`` is not a node of the project
    """
    get_project_for_update(db, project_id)

    last_node = get_last_timeline_node(db, project_id)
    if not last_node:
        return None
    if last_node.node_id == new_node_id:
        logger.warning(
            "Node %s already ends the main path of project %s; not linking to itself",
            new_node_id,
            project_id,
        )
        return None

    edge = create_edge(db, project_id, last_node.node_id, new_node_id, commit=commit)
    logger.info(
        "Auto-linked node %s after %s in project %s",
        new_node_id,
        last_node.node_id,
        project_id,
    )
    return edge
