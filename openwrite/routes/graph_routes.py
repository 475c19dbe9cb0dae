"""Story graph routes: nodes, their text blocks, and the connections between them."""

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from openwrite.database import Database, get_database_instance
from openwrite.schemas.enums import GraphNodeType
from openwrite.schemas.graph import (GraphConnectionCreate, GraphConnectionUpdate, GraphNodeCreate,
                                     GraphNodeUpdate, NodePosition, TextBlockCreate, TextBlockUpdate)
from openwrite.security.session import verify_project_access
from openwrite.utils.serialization import serialize_row, serialize_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects/{project_id}/graph", tags=["graph"])


def get_node_or_404(
    node_id: str,
    project: Dict = Depends(verify_project_access),
    db: Database = Depends(get_database_instance)
) -> Dict:
    node = db.facade.get_graph_node(project["id"], node_id)
    if node is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Node not found")
    return node


@router.get("")
async def get_graph(
    project: Dict = Depends(verify_project_access),
    db: Database = Depends(get_database_instance)
):
    """Nodes and connections in one call, for hydrating the canvas."""
    graph = db.facade.get_project_graph(project["id"])
    return {
        "nodes": serialize_rows(graph["nodes"]),
        "connections": serialize_rows(graph["connections"])
    }


# Nodes

@router.get("/nodes")
async def list_nodes(
    node_type: Optional[GraphNodeType] = Query(None, alias="nodeType"),
    project: Dict = Depends(verify_project_access),
    db: Database = Depends(get_database_instance)
):
    node_type_value = node_type.value if node_type else None
    return {"nodes": serialize_rows(db.facade.list_graph_nodes(project["id"], node_type=node_type_value))}


@router.post("/nodes", status_code=status.HTTP_201_CREATED)
async def create_node(
    payload: GraphNodeCreate,
    project: Dict = Depends(verify_project_access),
    db: Database = Depends(get_database_instance)
):
    node_id = db.facade.create_graph_node(project["id"], payload.model_dump())
    return {"success": True, "id": node_id}


@router.get("/nodes/{node_id}")
async def get_node(node: Dict = Depends(get_node_or_404)):
    return {"node": serialize_row(node)}


@router.put("/nodes/{node_id}")
async def update_node(
    payload: GraphNodeUpdate,
    node: Dict = Depends(get_node_or_404),
    db: Database = Depends(get_database_instance)
):
    db.facade.update_graph_node(node["project_id"], node["id"], payload.model_dump(exclude_unset=True))
    return {"success": True}


@router.put("/nodes/{node_id}/position")
async def update_node_position(
    payload: NodePosition,
    node: Dict = Depends(get_node_or_404),
    db: Database = Depends(get_database_instance)
):
    db.facade.update_graph_node_position(node["project_id"], node["id"], payload.position_x, payload.position_y)
    return {"success": True}


@router.delete("/nodes/{node_id}")
async def delete_node(
    node: Dict = Depends(get_node_or_404),
    db: Database = Depends(get_database_instance)
):
    """Delete a node; its text blocks and connections go with it."""
    db.facade.delete_graph_node(node["project_id"], node["id"])
    return {"success": True}


# Text blocks

@router.get("/nodes/{node_id}/text-blocks")
async def list_text_blocks(
    node: Dict = Depends(get_node_or_404),
    db: Database = Depends(get_database_instance)
):
    return {"textBlocks": serialize_rows(db.facade.list_text_blocks(node["id"]))}


@router.post("/nodes/{node_id}/text-blocks", status_code=status.HTTP_201_CREATED)
async def create_text_block(
    payload: TextBlockCreate,
    node: Dict = Depends(get_node_or_404),
    db: Database = Depends(get_database_instance)
):
    block_id = db.facade.create_text_block(node["project_id"], node["id"], payload.content, payload.order_index)
    return {"success": True, "id": block_id}


@router.put("/nodes/{node_id}/text-blocks/{block_id}")
async def update_text_block(
    block_id: str,
    payload: TextBlockUpdate,
    node: Dict = Depends(get_node_or_404),
    db: Database = Depends(get_database_instance)
):
    if not db.facade.update_text_block(node["project_id"], node["id"], block_id,
                                       payload.model_dump(exclude_unset=True)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Text block not found")
    return {"success": True}


@router.delete("/nodes/{node_id}/text-blocks/{block_id}")
async def delete_text_block(
    block_id: str,
    node: Dict = Depends(get_node_or_404),
    db: Database = Depends(get_database_instance)
):
    if not db.facade.delete_text_block(node["project_id"], node["id"], block_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Text block not found")
    return {"success": True}


# Connections

@router.get("/connections")
async def list_connections(
    node_id: Optional[str] = Query(None, alias="nodeId"),
    project: Dict = Depends(verify_project_access),
    db: Database = Depends(get_database_instance)
):
    return {"connections": serialize_rows(db.facade.list_graph_connections(project["id"], node_id=node_id))}


@router.post("/connections", status_code=status.HTTP_201_CREATED)
async def create_connection(
    payload: GraphConnectionCreate,
    project: Dict = Depends(verify_project_access),
    db: Database = Depends(get_database_instance)
):
    connection_id = db.facade.create_graph_connection(project["id"], payload.model_dump())
    return {"success": True, "id": connection_id}


@router.get("/connections/{connection_id}")
async def get_connection(
    connection_id: str,
    project: Dict = Depends(verify_project_access),
    db: Database = Depends(get_database_instance)
):
    connection = db.facade.get_graph_connection(project["id"], connection_id)
    if connection is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Connection not found")
    return {"connection": serialize_row(connection)}


@router.put("/connections/{connection_id}")
async def update_connection(
    connection_id: str,
    payload: GraphConnectionUpdate,
    project: Dict = Depends(verify_project_access),
    db: Database = Depends(get_database_instance)
):
    if not db.facade.update_graph_connection(project["id"], connection_id, payload.model_dump(exclude_unset=True)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Connection not found")
    return {"success": True}


@router.delete("/connections/{connection_id}")
async def delete_connection(
    connection_id: str,
    project: Dict = Depends(verify_project_access),
    db: Database = Depends(get_database_instance)
):
    if not db.facade.delete_graph_connection(project["id"], connection_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Connection not found")
    return {"success": True}
