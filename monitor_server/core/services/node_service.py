"""
Node service handling rename requests.

Keeps the last known name and location of each node in memory and hands
an audit record of every rename to the background task queue.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from ..domain.nodes import Node, NodeNotFoundError, RenameNodeRequest, validate
from ..domain.tasks import TaskQueueClosedError
from ..interfaces.lifecycle import IComponent
from ..interfaces.tasks import ITaskQueue

logger = logging.getLogger(__name__)


class NodeService(IComponent):
    """Applies validated rename requests to the node directory."""

    def __init__(self, task_queue: Optional[ITaskQueue] = None) -> None:
        self._task_queue = task_queue
        self._nodes: Dict[int, Node] = {}
        self._running = False
        self._renames = 0

    @property
    def name(self) -> str:
        return "NodeService"

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        logger.info("Node service started")

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        logger.info(f"Node service stopped ({len(self._nodes)} nodes known)")

    async def check_health(self) -> Dict[str, Any]:
        return {
            'healthy': True,
            'status': 'running' if self._running else 'stopped',
            'details': {
                'nodes_count': len(self._nodes),
                'renames': self._renames,
                'audit_enabled': self._task_queue is not None,
            }
        }

    async def rename(self, request: RenameNodeRequest) -> Node:
        """
        Rename a node.

        Args:
            request: Rename request

        Returns:
            Stored node record

        Raises:
            ValidationError: If the request is invalid
            QueueFullError: If the audit task cannot be queued; the rename
                is not applied
        """
        validate(request)

        previous = self._nodes.get(request.id)
        node = Node(id=request.id, name=request.node, location=request.location)
        await self._submit_audit(previous, node)

        self._nodes[request.id] = node
        self._renames += 1

        logger.info(f"Renamed node {node.id} to '{node.name}' ({node.location})")
        return node

    def get(self, node_id: int) -> Node:
        """Get a node by id, raising NodeNotFoundError if unknown."""
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NodeNotFoundError(node_id) from None

    def list_nodes(self) -> List[Node]:
        return [self._nodes[node_id] for node_id in sorted(self._nodes)]

    async def _submit_audit(self, previous: Optional[Node], node: Node) -> None:
        if self._task_queue is None:
            return

        try:
            await self._task_queue.submit(
                _record_rename, previous, node, name=f"audit-rename-{node.id}")
        except TaskQueueClosedError as e:
            # Queue is shutting down; the rename goes ahead without an audit record
            logger.warning(f"Could not queue audit record for node {node.id}: {e}")


async def _record_rename(previous: Optional[Node], node: Node) -> Dict[str, Any]:
    """Write the audit record of a rename."""
    record = {
        'node_id': node.id,
        'old_name': previous.name if previous else None,
        'old_location': previous.location if previous else None,
        'new_name': node.name,
        'new_location': node.location,
        'recorded_at': time.time(),
    }
    logger.info(f"Audit: node {node.id} renamed "
                f"{record['old_name']!r}/{record['old_location']} -> "
                f"{node.name!r}/{node.location}")
    return record
