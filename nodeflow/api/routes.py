"""
API routes for Nodeflow Core
"""
import asyncio

from fastapi import APIRouter, HTTPException, Depends, Request
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List

from ..core.container import ServiceContainer
from ..core.execution.document import PipelineDocument
from ..core.execution.node_registry import NODE_REGISTRY, UnknownNodeTypeError
from ..core.execution.runner import ExecutionRegistry
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


# Request/Response models
class ConnectionModel(BaseModel):
    """Connection from a source port to a sink port"""
    id: Optional[str] = None
    from_node: str
    from_port: str
    to_node: str
    to_port: str
    order: Optional[int] = Field(default=None, description="Ordering among connections into a multi port")


class GraphRequest(BaseModel):
    """Full graph of a document"""
    nodes: List[Dict[str, Any]] = Field(..., description="Nodes: {'id', 'type', ...payload}")
    connections: List[ConnectionModel] = Field(default_factory=list)


class ExecuteRequest(BaseModel):
    node_ids: Optional[List[str]] = Field(
        default=None,
        description="Nodes that seed the run (default: every node without outgoing connections)"
    )


class ExecuteResponse(BaseModel):
    run_id: int
    node_ids: List[str]


class NodeSnapshotModel(BaseModel):
    status: str
    error: Optional[str] = None


class StatusResponse(BaseModel):
    running: bool
    run_id: int
    last_completed_run_id: int
    nodes: Dict[str, NodeSnapshotModel]


class FailedNodeModel(BaseModel):
    node_id: str
    label: str
    error: str


def get_registry(request: Request) -> ExecutionRegistry:
    """Get ExecutionRegistry from app state (injected by FastAPI)"""
    return request.app.state.registry


def get_container(request: Request) -> ServiceContainer:
    """Get ServiceContainer from app state (injected by FastAPI)"""
    return request.app.state.container


def get_documents(request: Request) -> Dict[str, PipelineDocument]:
    return request.app.state.documents


def _require_document(documents: Dict[str, PipelineDocument], doc_id: str) -> PipelineDocument:
    document = documents.get(doc_id)
    if document is None:
        raise HTTPException(status_code=404, detail=f"Document not found: {doc_id}")
    return document


@router.get("/health")
async def health(container: ServiceContainer = Depends(get_container)):
    """Health check, including reachability of the generation service"""
    generation_ok = await asyncio.to_thread(container.get_generation_client().health_check)
    return {
        "status": "healthy",
        "generation_service": "reachable" if generation_ok else "unreachable",
    }


@router.get("/nodes")
async def list_node_types():
    """Registered node kinds and their default payloads"""
    return {
        node_type: {
            "title": node_class.title,
            "category": node_class.category,
            "default": node_class().get_default(),
        }
        for node_type, node_class in NODE_REGISTRY.items()
    }


# Documents
@router.put("/documents/{doc_id}/graph")
async def put_graph(
    doc_id: str,
    graph: GraphRequest,
    documents: Dict[str, PipelineDocument] = Depends(get_documents),
    registry: ExecutionRegistry = Depends(get_registry),
    container: ServiceContainer = Depends(get_container),
):
    """Load or replace the graph of a document"""
    document = PipelineDocument(doc_id, container)
    try:
        document.load_graph({
            "nodes": graph.nodes,
            "connections": [c.model_dump(exclude_none=True) for c in graph.connections],
        })
    except (UnknownNodeTypeError, ValueError, KeyError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    # Replacing the graph invalidates any run of the old one
    registry.stop_execution(doc_id)
    documents[doc_id] = document
    logger.info(f"Loaded graph for document {doc_id} ({len(graph.nodes)} nodes)")
    return document.to_graph()


@router.get("/documents/{doc_id}/graph")
async def get_graph(doc_id: str, documents: Dict[str, PipelineDocument] = Depends(get_documents)):
    """Current graph, including result fields written back by runs"""
    return _require_document(documents, doc_id).to_graph()


@router.delete("/documents/{doc_id}")
async def delete_document(
    doc_id: str,
    documents: Dict[str, PipelineDocument] = Depends(get_documents),
    registry: ExecutionRegistry = Depends(get_registry),
):
    """Drop a document and its run state"""
    _require_document(documents, doc_id)
    registry.dispose(doc_id)
    del documents[doc_id]
    return {"status": "deleted", "document_id": doc_id}


# Execution
@router.post("/documents/{doc_id}/execute", response_model=ExecuteResponse)
async def execute(
    doc_id: str,
    request: Optional[ExecuteRequest] = None,
    documents: Dict[str, PipelineDocument] = Depends(get_documents),
    registry: ExecutionRegistry = Depends(get_registry),
):
    """Start a run in the background"""
    document = _require_document(documents, doc_id)
    node_ids = request.node_ids if request and request.node_ids else document.terminal_node_ids()
    unknown = [node_id for node_id in node_ids if not document.has_node(node_id)]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown node ids: {', '.join(unknown)}")

    try:
        run_id = registry.launch_execution(document, node_ids)
    except Exception as e:
        logger.error(f"Failed to start run for document {doc_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
    return ExecuteResponse(run_id=run_id, node_ids=node_ids)


@router.post("/documents/{doc_id}/stop")
async def stop(
    doc_id: str,
    documents: Dict[str, PipelineDocument] = Depends(get_documents),
    registry: ExecutionRegistry = Depends(get_registry),
):
    """Stop the current run"""
    _require_document(documents, doc_id)
    run_id = registry.stop_execution(doc_id)
    return {"stopped": run_id is not None, "run_id": run_id}


@router.get("/documents/{doc_id}/status", response_model=StatusResponse)
async def status(
    doc_id: str,
    documents: Dict[str, PipelineDocument] = Depends(get_documents),
    registry: ExecutionRegistry = Depends(get_registry),
):
    """Run counters and per-node status of the most recent run"""
    _require_document(documents, doc_id)
    return registry.get_status(doc_id)


@router.get("/documents/{doc_id}/errors", response_model=List[FailedNodeModel])
async def errors(
    doc_id: str,
    documents: Dict[str, PipelineDocument] = Depends(get_documents),
    registry: ExecutionRegistry = Depends(get_registry),
):
    """Failed nodes of the last completed run (empty once dismissed)"""
    document = _require_document(documents, doc_id)
    return registry.get_failed_nodes(document)


@router.post("/documents/{doc_id}/errors/dismiss")
async def dismiss_errors(
    doc_id: str,
    documents: Dict[str, PipelineDocument] = Depends(get_documents),
    registry: ExecutionRegistry = Depends(get_registry),
):
    _require_document(documents, doc_id)
    registry.dismiss_errors(doc_id)
    return {"status": "dismissed"}
