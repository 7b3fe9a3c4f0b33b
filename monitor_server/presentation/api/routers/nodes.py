"""
Node management API router.

Exposes the rename-node operation and read access to renamed nodes.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, status
from pydantic import BaseModel, Field

from ....core.domain.nodes import LOCATION_CODES, Node, RenameNodeRequest
from ....core.services.node_service import NodeService
from ..dependencies import get_node_service, require_api_key

logger = logging.getLogger(__name__)

RENAME_EXAMPLE = {"id": 1, "node": "core-1", "location": "sh"}


class NodeResponse(BaseModel):
    """Node record response model."""
    id: int = Field(..., description="Node identifier")
    name: str = Field(..., description="Node name")
    location: str = Field(..., description="Location code")
    updated_at: float = Field(..., description="Last rename timestamp")

    @classmethod
    def from_node(cls, node: Node) -> 'NodeResponse':
        return cls(**node.to_dict())


router = APIRouter(
    prefix="/api/nodes",
    tags=["nodes"],
    dependencies=[Depends(require_api_key)],
    responses={
        422: {"description": "Invalid rename request"},
        status.HTTP_401_UNAUTHORIZED: {"description": "Missing or invalid API key"},
    }
)


@router.post("/rename", response_model=NodeResponse,
             responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Task queue full"}})
async def rename_node(
    payload: Dict[str, Any] = Body(
        ...,
        description=(
            "Rename request: integer `id`, `node` name of 1 to 10 characters and "
            f"`location`, one of {', '.join(sorted(LOCATION_CODES))}"
        ),
        examples=[RENAME_EXAMPLE],
    ),
    node_service: NodeService = Depends(get_node_service)
) -> NodeResponse:
    """Rename a node and set its location."""
    # Types are checked by from_dict, which does not coerce booleans or numeric strings
    node = await node_service.rename(RenameNodeRequest.from_dict(payload))
    return NodeResponse.from_node(node)


@router.get("", response_model=List[NodeResponse])
async def list_nodes(
    node_service: NodeService = Depends(get_node_service)
) -> List[NodeResponse]:
    """List all known nodes ordered by id."""
    return [NodeResponse.from_node(node) for node in node_service.list_nodes()]


@router.get("/{node_id}", response_model=NodeResponse,
            responses={status.HTTP_404_NOT_FOUND: {"description": "Unknown node"}})
async def get_node(
    node_id: int,
    node_service: NodeService = Depends(get_node_service)
) -> NodeResponse:
    """Get a single node."""
    return NodeResponse.from_node(node_service.get(node_id))
