"""
DocSearch API
FastAPI application exposing the four document tools:
- /tools/search: Semantic search over indexed chunks
- /tools/index: Index a file, URL or inline content
- /tools/list: List indexed documents
- /tools/delete: Remove a document and its chunks

PLUS /health for liveness checks.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from docsearch import __version__
from docsearch.config import get_settings
from docsearch.core.exceptions import DocSearchError
from docsearch.core.indexing import IndexingPipeline, create_pipeline
from docsearch.core.logging import get_logger, setup_logging
from docsearch.schema import (
    DeleteRequest,
    DeleteResponse,
    IndexRequest,
    IndexResponse,
    ListRequest,
    ListResponse,
    SearchRequest,
    SearchResponse,
)

# Initialize logging before app creation
setup_logging()
logger = get_logger(__name__)


def create_app(pipeline: Optional[IndexingPipeline] = None) -> FastAPI:
    """
    Build the API. Tests inject a ready pipeline; otherwise one is built
    from Settings when the app starts.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        logger.info("api_startup", version=__version__, mode=settings.app_env)

        owned = pipeline is None
        try:
            app.state.pipeline = pipeline or create_pipeline(settings)
        except DocSearchError as e:
            logger.error("pipeline_initialization_failed", error=e.message)
            raise

        yield

        if owned:
            app.state.pipeline.store.close()
        logger.info("api_shutdown")

    app = FastAPI(
        title="DocSearch API",
        version=__version__,
        description="Semantic search over files, URLs and inline content",
        lifespan=lifespan,
    )

    # ============================================
    # ERROR HANDLING
    # ============================================

    @app.exception_handler(DocSearchError)
    async def docsearch_error_handler(request: Request, exc: DocSearchError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "request_failed",
            path=request.url.path,
            error=type(exc).__name__,
            message=exc.message,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": type(exc).__name__,
                "message": exc.message,
                "details": exc.details,
            },
        )

    # ============================================
    # HEALTH CHECK
    # ============================================

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    # ============================================
    # TOOLS
    # ============================================

    @app.post("/tools/search", response_model=SearchResponse)
    async def search(
        request: SearchRequest,
        pipeline: IndexingPipeline = Depends(get_pipeline),
    ):
        """Search indexed documents by semantic similarity."""
        return await pipeline.search(request)

    @app.post("/tools/index", response_model=IndexResponse)
    async def index(
        request: IndexRequest,
        pipeline: IndexingPipeline = Depends(get_pipeline),
    ):
        """Index a file, URL, or content. Provide exactly one of: file_path, url, or (content + source)."""
        return await pipeline.index(request)

    @app.post("/tools/list", response_model=ListResponse, response_model_exclude_none=True)
    async def list_documents(
        request: Optional[ListRequest] = None,
        pipeline: IndexingPipeline = Depends(get_pipeline),
    ):
        """List all indexed documents, optionally filtered by source type."""
        return await pipeline.list_documents(request or ListRequest())

    @app.post("/tools/delete", response_model=DeleteResponse)
    async def delete(
        request: DeleteRequest,
        pipeline: IndexingPipeline = Depends(get_pipeline),
    ):
        """Remove an indexed document and all its chunks."""
        return await pipeline.delete(request)

    return app


# ============================================
# DEPENDENCY INJECTION
# ============================================

def get_pipeline(request: Request) -> IndexingPipeline:
    """Pipeline created (or injected) at startup."""
    return request.app.state.pipeline


app = create_app()
