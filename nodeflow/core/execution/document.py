"""
Pipeline Document
The live graph a canvas edits: node payloads, connections and display flags
"""
import copy
import uuid
from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Callable, Set, Tuple

from ..container import ServiceContainer
from ..types import NodeID, PortID, DocumentID, ConnectionData, NodeGraph, PortTerminal
from .node_base import BaseNode, Port, PortInfo, InfoValues
from .node_registry import get_node_definition, create_node_payload, UnknownNodeTypeError
from ...utils.logger import get_logger

logger = get_logger(__name__)

# (event, node_id) where event is "busy", "idle" or "payload"
DocumentListener = Callable[[str, NodeID], None]


@dataclass(frozen=True)
class PortConnection:
    """A connection as seen from one of its two nodes"""
    id: str
    terminal: PortTerminal  # "start" if this node is the producer, "end" if the consumer
    own_port_id: PortID
    connected_node_id: NodeID
    connected_port_id: PortID
    order: int = 0


class PipelineDocument:
    """
    Live graph for one editor/document

    Node payloads are plain dicts whose "type" key selects the node kind in the
    registry. The engine only reads topology from here; nodes write results back
    through update_node() and the engine reports busy/idle transitions through
    set_busy().
    """

    def __init__(self, document_id: Optional[DocumentID] = None, container: Optional[ServiceContainer] = None):
        """
        Initialize document

        Args:
            document_id: Identifier used to key run state (random if omitted)
            container: Services available to node implementations
        """
        self.document_id: DocumentID = document_id or f"doc-{uuid.uuid4().hex[:8]}"
        self.container = container or ServiceContainer()
        self._nodes: Dict[NodeID, Dict[str, Any]] = {}
        self._connections: Dict[str, ConnectionData] = {}
        self._flags: Dict[NodeID, Dict[str, bool]] = {}
        self._listeners: List[DocumentListener] = []

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def add_node(self, node: Any, node_id: Optional[NodeID] = None, **overrides) -> NodeID:
        """
        Add a node to the document

        Args:
            node: Node type string (default payload is used) or a full payload dict
            node_id: Optional explicit id
            **overrides: Payload fields to override on the default payload

        Returns:
            The node id

        Raises:
            UnknownNodeTypeError: If the node type is not registered
        """
        if isinstance(node, str):
            payload = create_node_payload(node, **overrides)
        else:
            payload = copy.deepcopy(dict(node))
            payload.update(overrides)
            payload.pop('id', None)
            # Validate the kind up front
            get_node_definition(payload)

        node_id = node_id or (node.get('id') if isinstance(node, dict) else None) or f"node-{uuid.uuid4().hex[:8]}"
        self._nodes[node_id] = payload
        self._flags[node_id] = {'is_stale': False, 'is_executing': False}
        return node_id

    def remove_node(self, node_id: NodeID) -> None:
        """Remove a node and every connection touching it"""
        self._nodes.pop(node_id, None)
        self._flags.pop(node_id, None)
        for conn_id in [cid for cid, c in self._connections.items()
                        if c['from_node'] == node_id or c['to_node'] == node_id]:
            del self._connections[conn_id]

    def has_node(self, node_id: NodeID) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: NodeID) -> Optional[Dict[str, Any]]:
        """
        Get a copy of a node's payload

        Returns:
            Payload dict, or None if the node does not exist
        """
        payload = self._nodes.get(node_id)
        return copy.deepcopy(payload) if payload is not None else None

    def node_ids(self) -> List[NodeID]:
        return list(self._nodes.keys())

    def get_definition(self, node_id: NodeID) -> Optional[BaseNode]:
        """Node implementation for a node, or None if the node is missing or unknown"""
        payload = self._nodes.get(node_id)
        if payload is None:
            return None
        try:
            return get_node_definition(payload)
        except UnknownNodeTypeError:
            return None

    def update_node(self, node_id: NodeID, updater: Callable[[Dict[str, Any]], Dict[str, Any]]) -> None:
        """
        Persist an updated payload for a node

        Args:
            node_id: Node to update (silently ignored if it was deleted meanwhile)
            updater: Receives a copy of the current payload, returns the new one
        """
        current = self._nodes.get(node_id)
        if current is None:
            return
        updated = updater(copy.deepcopy(current))
        updated['type'] = current['type']
        self._nodes[node_id] = updated
        self._emit('payload', node_id)

    # ------------------------------------------------------------------
    # Ports and connections
    # ------------------------------------------------------------------

    def get_ports(self, node_id: NodeID) -> Dict[PortID, Port]:
        """Ports of a node, derived from its payload"""
        definition = self.get_definition(node_id)
        if definition is None:
            return {}
        return definition.ports(self._nodes[node_id])

    def connect(
        self,
        from_node: NodeID,
        from_port: PortID,
        to_node: NodeID,
        to_port: PortID,
        order: Optional[int] = None,
        connection_id: Optional[str] = None
    ) -> str:
        """
        Connect a source port to a sink port

        A non-multi sink port keeps at most one incoming connection; connecting
        to an occupied one replaces the old connection.

        Args:
            from_node: Producer node id
            from_port: Source port id on the producer
            to_node: Consumer node id
            to_port: Sink port id on the consumer
            order: Ordering among connections into the same multi port
                   (defaults to after the existing ones)
            connection_id: Optional explicit id

        Returns:
            The connection id

        Raises:
            ValueError: If either port does not exist or has the wrong direction
        """
        source = self.get_ports(from_node).get(from_port)
        if source is None or not source.is_source:
            raise ValueError(f"Node {from_node} has no output port '{from_port}'")
        sink = self.get_ports(to_node).get(to_port)
        if sink is None or not sink.is_sink:
            raise ValueError(f"Node {to_node} has no input port '{to_port}'")

        existing = [c for c in self._connections.values()
                    if c['to_node'] == to_node and c['to_port'] == to_port]
        if not sink.multi:
            for conn in existing:
                del self._connections[conn['id']]
            existing = []

        if order is None:
            order = max((c.get('order', 0) for c in existing), default=-1) + 1

        connection_id = connection_id or f"conn-{uuid.uuid4().hex[:8]}"
        self._connections[connection_id] = {
            'id': connection_id,
            'from_node': from_node,
            'from_port': from_port,
            'to_node': to_node,
            'to_port': to_port,
            'order': order,
        }
        return connection_id

    def disconnect(self, connection_id: str) -> None:
        self._connections.pop(connection_id, None)

    def get_connections(self) -> List[ConnectionData]:
        return [dict(c) for c in self._connections.values()]

    def get_port_connections(self, node_id: NodeID) -> List[PortConnection]:
        """
        Every connection touching a node, from that node's point of view

        Args:
            node_id: Node id

        Returns:
            List of PortConnection (terminal "end" = incoming, "start" = outgoing)
        """
        result: List[PortConnection] = []
        for conn in self._connections.values():
            if conn['to_node'] == node_id:
                result.append(PortConnection(
                    id=conn['id'],
                    terminal='end',
                    own_port_id=conn['to_port'],
                    connected_node_id=conn['from_node'],
                    connected_port_id=conn['from_port'],
                    order=conn.get('order', 0),
                ))
            if conn['from_node'] == node_id:
                result.append(PortConnection(
                    id=conn['id'],
                    terminal='start',
                    own_port_id=conn['from_port'],
                    connected_node_id=conn['to_node'],
                    connected_port_id=conn['to_port'],
                    order=conn.get('order', 0),
                ))
        return result

    def terminal_node_ids(self) -> List[NodeID]:
        """Nodes without outgoing connections; seeding a run with these runs the whole graph"""
        producers = {c['from_node'] for c in self._connections.values()}
        return [node_id for node_id in self._nodes if node_id not in producers]

    # ------------------------------------------------------------------
    # Display projection
    # ------------------------------------------------------------------

    def get_input_info(self, node_id: NodeID) -> InfoValues:
        """Previews of whatever currently feeds each sink port of a node"""
        return self._input_info(node_id, set())

    def get_output_info(self, node_id: NodeID) -> InfoValues:
        """
        What each source port of a node would show right now

        Synchronous and side effect free; never runs a node.
        """
        return self._output_info(node_id, set())

    def _output_info(self, node_id: NodeID, visiting: Set[NodeID]) -> InfoValues:
        definition = self.get_definition(node_id)
        if definition is None or node_id in visiting:
            return {}
        visiting = visiting | {node_id}
        inputs = self._input_info(node_id, visiting)
        return definition.preview_outputs(self._nodes[node_id], inputs, self.is_stale(node_id))

    def _input_info(self, node_id: NodeID, visiting: Set[NodeID]) -> InfoValues:
        ports = self.get_ports(node_id)
        incoming = sorted(
            (c for c in self.get_port_connections(node_id) if c.terminal == 'end'),
            key=lambda c: c.order
        )
        result: InfoValues = {}
        for conn in incoming:
            upstream = self._output_info(conn.connected_node_id, visiting).get(conn.connected_port_id)
            if upstream is None:
                continue
            port = ports.get(conn.own_port_id)
            if port is not None and port.multi:
                existing = result.get(conn.own_port_id)
                if existing is None:
                    result[conn.own_port_id] = PortInfo(
                        value=[upstream.first_value()],
                        is_stale=upstream.is_stale,
                        data_type=upstream.data_type,
                        multi=True,
                    )
                else:
                    existing.value.append(upstream.first_value())
                    existing.is_stale = existing.is_stale or upstream.is_stale
            else:
                result[conn.own_port_id] = upstream
        return result

    # ------------------------------------------------------------------
    # Display flags and notifications
    # ------------------------------------------------------------------

    def set_busy(self, node_id: NodeID, busy: bool) -> None:
        """Mark a node as executing (spinner on) or idle (spinner off)"""
        flags = self._flags.get(node_id)
        if flags is None:
            return
        flags['is_executing'] = busy
        flags['is_stale'] = busy
        self._emit('busy' if busy else 'idle', node_id)

    def set_stale(self, node_id: NodeID, stale: bool) -> None:
        flags = self._flags.get(node_id)
        if flags is not None:
            flags['is_stale'] = stale

    def is_busy(self, node_id: NodeID) -> bool:
        return self._flags.get(node_id, {}).get('is_executing', False)

    def is_stale(self, node_id: NodeID) -> bool:
        return self._flags.get(node_id, {}).get('is_stale', False)

    def add_listener(self, listener: DocumentListener) -> Callable[[], None]:
        """
        Register a callback for busy/idle/payload events

        Returns:
            Function that unregisters the listener
        """
        self._listeners.append(listener)

        def remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _emit(self, event: str, node_id: NodeID) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, node_id)
            except Exception as e:
                logger.error(f"Document listener failed on {event} for {node_id}: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_graph(self) -> NodeGraph:
        """Serialize nodes and connections"""
        return {
            'id': self.document_id,
            'nodes': [{'id': node_id, **copy.deepcopy(payload)} for node_id, payload in self._nodes.items()],
            'connections': self.get_connections(),
        }

    def load_graph(self, graph: NodeGraph) -> None:
        """
        Replace the document's contents with a serialized graph

        Args:
            graph: {"nodes": [...], "connections": [...]}

        Raises:
            UnknownNodeTypeError: If a node names an unregistered type
            ValueError: If a node has no id or a connection references bad ports
        """
        self._nodes.clear()
        self._flags.clear()
        self._connections.clear()

        for node_data in graph.get('nodes', []):
            node_id = node_data.get('id')
            if not node_id:
                raise ValueError("Every node needs an 'id'")
            payload = {k: v for k, v in node_data.items() if k != 'id'}
            definition = get_node_definition(payload)
            # Fill in fields the saved payload predates
            merged = definition.get_default()
            merged.update(payload)
            self.add_node(merged, node_id=node_id)

        for conn in graph.get('connections', []):
            if conn['from_node'] not in self._nodes or conn['to_node'] not in self._nodes:
                raise ValueError(f"Connection references unknown node: {conn}")
            self.connect(
                conn['from_node'],
                conn['from_port'],
                conn['to_node'],
                conn['to_port'],
                order=conn.get('order'),
                connection_id=conn.get('id'),
            )

    @classmethod
    def from_graph(
        cls,
        graph: NodeGraph,
        document_id: Optional[DocumentID] = None,
        container: Optional[ServiceContainer] = None
    ) -> "PipelineDocument":
        document = cls(document_id or graph.get('id'), container)
        document.load_graph(graph)
        return document

    def describe(self, node_id: NodeID) -> Tuple[str, str]:
        """(type, label) for a node, for logs and error summaries"""
        definition = self.get_definition(node_id)
        node_type = self._nodes.get(node_id, {}).get('type', 'unknown')
        return node_type, definition.label() if definition else node_type
