"""
Base node class for execution engine
"""
from abc import ABC, abstractmethod
from typing import Dict, Any, Callable, TYPE_CHECKING
from dataclasses import dataclass

from ..types import NodeID, PortID, PortTerminal, PortDataType
from .values import ExecutionResult, InputValues, OutputValue, STOP

if TYPE_CHECKING:
    from .document import PipelineDocument


@dataclass(frozen=True)
class Port:
    """A named attachment point on a node"""
    id: PortID
    terminal: PortTerminal  # "start" = source/output, "end" = sink/input
    data_type: PortDataType = "any"
    multi: bool = False  # Sink ports only: accepts several ordered connections

    @property
    def is_source(self) -> bool:
        return self.terminal == "start"

    @property
    def is_sink(self) -> bool:
        return self.terminal == "end"


@dataclass
class PortInfo:
    """
    What a port would show right now, without running anything

    For multi sink ports `value` is a list and `multi` is True.
    """
    value: Any
    is_stale: bool = False
    data_type: PortDataType = "any"
    multi: bool = False

    def first_value(self) -> OutputValue:
        """Single value view of this port (first entry for multi ports)"""
        if self.multi:
            return self.value[0] if self.value else None
        return self.value


InfoValues = Dict[PortID, PortInfo]


def any_inputs_stale(inputs: InfoValues) -> bool:
    """Check whether any input preview is stale"""
    return any(info.is_stale for info in inputs.values())


@dataclass
class ExecutionContext:
    """Context passed to nodes during execution"""
    document: 'PipelineDocument'
    node_id: NodeID

    @property
    def container(self):
        """ServiceContainer of the owning document"""
        return self.document.container

    def update_payload(self, updater: Callable[[Dict[str, Any]], Dict[str, Any]]) -> None:
        """
        Ask the host to persist an updated payload for this node

        Args:
            updater: Receives a copy of the current payload, returns the new one
        """
        self.document.update_node(self.node_id, updater)


class BaseNode(ABC):
    """
    Base class for all node kinds

    Each node kind:
    - Declares its ports from its payload
    - Computes outputs from resolved inputs (async)
    - Projects what its outputs would show for display, without side effects

    Node kinds are stateless; everything a node knows lives in its payload.
    """

    # Discriminator stored in the payload's "type" key
    node_type: str = ""
    title: str = ""
    category: str = "input"

    @abstractmethod
    def get_default(self) -> Dict[str, Any]:
        """
        Default payload for a freshly created node

        Returns:
            Payload dict including the "type" discriminator
        """
        pass

    @abstractmethod
    def ports(self, payload: Dict[str, Any]) -> Dict[PortID, Port]:
        """
        Port declarations derived from the payload

        Args:
            payload: Node payload

        Returns:
            Dictionary of port_id -> Port
        """
        pass

    @abstractmethod
    async def compute(
        self,
        payload: Dict[str, Any],
        inputs: InputValues,
        context: ExecutionContext
    ) -> ExecutionResult:
        """
        Execute the node

        Args:
            payload: Node payload
            inputs: Resolved sink-port values (lists for multi ports)
            context: Execution context for persisting payload updates

        Returns:
            Dictionary of source-port values (a value may be STOP)

        Raises:
            Exception: any exception marks the node as failed
        """
        pass

    @abstractmethod
    def preview_outputs(self, payload: Dict[str, Any], inputs: InfoValues, is_stale: bool = False) -> InfoValues:
        """
        Display-only projection of the node's source ports

        Args:
            payload: Node payload
            inputs: Previews of whatever feeds each sink port
            is_stale: Whether the node itself is marked out of date

        Returns:
            Dictionary of port_id -> PortInfo
        """
        pass

    def source_ports(self, payload: Dict[str, Any]) -> Dict[PortID, Port]:
        return {pid: port for pid, port in self.ports(payload).items() if port.is_source}

    def sink_ports(self, payload: Dict[str, Any]) -> Dict[PortID, Port]:
        return {pid: port for pid, port in self.ports(payload).items() if port.is_sink}

    def label(self) -> str:
        """Human readable name used in error summaries"""
        return self.title or self.node_type


def single_output(value: OutputValue, data_type: PortDataType, is_stale: bool) -> InfoValues:
    """Preview helper for nodes with one 'output' port"""
    return {'output': PortInfo(value=value, is_stale=is_stale, data_type=data_type)}


__all__ = [
    'Port',
    'PortInfo',
    'InfoValues',
    'ExecutionContext',
    'BaseNode',
    'STOP',
    'any_inputs_stale',
    'single_output',
]
