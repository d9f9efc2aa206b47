"""
Graph Handler - REST API endpoints for the story graph.

Nodes and edges are plain CRUD. The ``/path``, ``/path/last`` and
``/starting`` endpoints expose the derived main path; nothing about it is
stored, so every call re-walks the graph.
"""

import logging
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.base import get_db
from database.models import Edge, Node, Project
from dependencies.project import require_project
from handlers.errors import handle_operator_error
from models.api_models import (
    AutoLinkRequest,
    AutoLinkResponse,
    EdgeCreateRequest,
    EdgeDeleteResponse,
    EdgeGetResponse,
    EdgeListResponse,
    EdgeResponse,
    GraphNodeResponse,
    NodeCreateRequest,
    NodeDataUpdateRequest,
    NodeDeleteResponse,
    NodeGetResponse,
    NodeListResponse,
    NodePosition,
    NodePositionUpdateRequest,
    NodeResponse,
    TimelinePathResponse,
)
from operators.edge_operator import (
    auto_link_to_timeline,
    create_edge,
    get_incoming_edges,
    get_last_timeline_node,
    get_outgoing_edges,
    get_starting_node,
    get_timeline_path,
    list_edges_by_project,
    remove_edge,
)
from operators.node_operator import (
    create_node,
    get_node,
    list_nodes,
    remove_node,
    update_node_data,
    update_node_position,
)
from operators.timeline_operator import NodeNotFoundError


router = APIRouter(prefix="/projects/{project_id}", tags=["graph"])
logger = logging.getLogger(__name__)


def _node_to_response(node: Node) -> NodeResponse:
    return NodeResponse(
        node_id=str(node.node_id),
        project_id=str(node.project_id),
        type=node.node_type,
        position=NodePosition(**node.position),
        data=node.data or {},
        created_at=node.created_at,
    )


def _edge_to_response(edge: Edge) -> EdgeResponse:
    return EdgeResponse(
        edge_id=str(edge.edge_id),
        project_id=str(edge.project_id),
        source_node_id=str(edge.source_node_id),
        target_node_id=str(edge.target_node_id),
        created_at=edge.created_at,
    )


def _parse_node_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise NodeNotFoundError(value)


# =============================================================================
# NODES
# =============================================================================


@router.get("/nodes", response_model=NodeListResponse)
async def nodes_list(
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    nodes = list_nodes(db, project.project_id)
    return NodeListResponse(ok=True, nodes=[_node_to_response(n) for n in nodes])


@router.post("/nodes", response_model=NodeGetResponse)
async def node_create(
    request: NodeCreateRequest,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    """
    Create a node, optionally appending it to the end of the main path.

    Node and link are committed together; a failed link leaves no node.
    """
    try:
        node = create_node(
            db,
            project.project_id,
            node_type=request.type,
            position=request.position.model_dump(),
            data=request.data,
            commit=False,
        )
        if request.auto_link:
            auto_link_to_timeline(db, project.project_id, node.node_id, commit=False)
        db.commit()
        db.refresh(node)
    except Exception as e:
        handle_operator_error(e, db, f"create node in project {project.project_id}")

    return NodeGetResponse(ok=True, node=_node_to_response(node))


@router.get("/nodes/{node_id}", response_model=NodeGetResponse)
async def node_get(
    node_id: UUID,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    try:
        node = get_node(db, node_id, project.project_id)
    except Exception as e:
        handle_operator_error(e, db, f"load node {node_id}")

    return NodeGetResponse(ok=True, node=_node_to_response(node))


@router.put("/nodes/{node_id}/position", response_model=NodeGetResponse)
async def node_update_position(
    node_id: UUID,
    request: NodePositionUpdateRequest,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    try:
        node = update_node_position(
            db, node_id, request.position.model_dump(), project.project_id
        )
    except Exception as e:
        handle_operator_error(e, db, f"move node {node_id}")

    return NodeGetResponse(ok=True, node=_node_to_response(node))


@router.put("/nodes/{node_id}/data", response_model=NodeGetResponse)
async def node_update_data(
    node_id: UUID,
    request: NodeDataUpdateRequest,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    try:
        node = update_node_data(db, node_id, request.data, project.project_id)
    except Exception as e:
        handle_operator_error(e, db, f"update data of node {node_id}")

    return NodeGetResponse(ok=True, node=_node_to_response(node))


@router.delete("/nodes/{node_id}", response_model=NodeDeleteResponse)
async def node_delete(
    node_id: UUID,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    try:
        remove_node(db, node_id, project.project_id)
    except Exception as e:
        handle_operator_error(e, db, f"delete node {node_id}")

    return NodeDeleteResponse(ok=True)


@router.get("/nodes/{node_id}/edges", response_model=EdgeListResponse)
async def node_edges(
    node_id: UUID,
    direction: Literal["outgoing", "incoming"] = Query(default="outgoing"),
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    try:
        get_node(db, node_id, project.project_id)
    except Exception as e:
        handle_operator_error(e, db, f"load node {node_id}")

    if direction == "incoming":
        edges = get_incoming_edges(db, node_id)
    else:
        edges = get_outgoing_edges(db, node_id)
    return EdgeListResponse(ok=True, edges=[_edge_to_response(e) for e in edges])


# =============================================================================
# EDGES
# =============================================================================


@router.get("/edges", response_model=EdgeListResponse)
async def edges_list(
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    edges = list_edges_by_project(db, project.project_id)
    return EdgeListResponse(ok=True, edges=[_edge_to_response(e) for e in edges])


@router.post("/edges", response_model=EdgeGetResponse)
async def edge_create(
    request: EdgeCreateRequest,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    """Connect two nodes. Connecting an already connected pair is a no-op."""
    try:
        edge = create_edge(
            db,
            project.project_id,
            _parse_node_id(request.source_node_id),
            _parse_node_id(request.target_node_id),
        )
    except Exception as e:
        handle_operator_error(e, db, f"create edge in project {project.project_id}")

    return EdgeGetResponse(ok=True, edge=_edge_to_response(edge))


@router.delete("/edges/{edge_id}", response_model=EdgeDeleteResponse)
async def edge_delete(
    edge_id: UUID,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    try:
        remove_edge(db, edge_id, project.project_id)
    except Exception as e:
        handle_operator_error(e, db, f"delete edge {edge_id}")

    return EdgeDeleteResponse(ok=True)


# =============================================================================
# MAIN PATH
# =============================================================================


@router.get("/starting", response_model=GraphNodeResponse)
async def graph_starting_node(
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    node = get_starting_node(db, project.project_id)
    return GraphNodeResponse(ok=True, node=_node_to_response(node) if node else None)


@router.get("/path", response_model=TimelinePathResponse)
async def graph_timeline_path(
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    path = get_timeline_path(db, project.project_id)
    return TimelinePathResponse(ok=True, nodes=[_node_to_response(n) for n in path])


@router.get("/path/last", response_model=GraphNodeResponse)
async def graph_last_node(
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    node = get_last_timeline_node(db, project.project_id)
    return GraphNodeResponse(ok=True, node=_node_to_response(node) if node else None)


@router.post("/path/link", response_model=AutoLinkResponse)
async def graph_auto_link(
    request: AutoLinkRequest,
    project: Project = Depends(require_project),
    db: Session = Depends(get_db),
):
    """Append an existing node to the end of the main path."""
    try:
        edge = auto_link_to_timeline(
            db, project.project_id, _parse_node_id(request.node_id)
        )
    except Exception as e:
        handle_operator_error(e, db, f"auto-link node {request.node_id}")

    return AutoLinkResponse(ok=True, edge=_edge_to_response(edge) if edge else None)
