"""
FastAPI server for Nodeflow Core
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import router
from .. import __version__
from ..core.bootstrap import get_container
from ..core.execution.runner import ExecutionRegistry
from ..utils.logger import get_logger

logger = get_logger(__name__)

app = FastAPI(title="Nodeflow Core API", version=__version__)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routes
app.include_router(router, prefix="/api/v1")


@app.on_event("startup")
async def startup():
    """Initialize services on startup"""
    # Routes read these through app.state
    if not hasattr(app.state, 'container'):
        app.state.container = get_container()
    if not hasattr(app.state, 'registry'):
        app.state.registry = ExecutionRegistry()
    if not hasattr(app.state, 'documents'):
        app.state.documents = {}
    logger.info("Nodeflow Core API started")


@app.on_event("shutdown")
async def shutdown():
    """Stop every running pipeline"""
    registry: ExecutionRegistry = getattr(app.state, 'registry', None)
    if registry is not None:
        for document_id in list(getattr(app.state, 'documents', {})):
            registry.dispose(document_id)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "Nodeflow Core",
        "version": __version__,
        "status": "running"
    }
