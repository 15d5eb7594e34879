import asyncio
import json
from typing import Optional

import typer

from docsearch.core.exceptions import DocSearchError
from docsearch.core.indexing import create_pipeline
from docsearch.core.logging import get_logger, setup_logging
from docsearch.schema import DeleteRequest, IndexRequest, ListRequest, SearchRequest, SourceType

# Initialize logging before anything else
setup_logging()
logger = get_logger(__name__)

app = typer.Typer(name="docsearch", help="Semantic search over files, URLs and inline content.")


def _run(operation, request):
    """Run one pipeline operation and print its response as JSON."""

    async def _call():
        pipeline = create_pipeline()
        try:
            return await operation(pipeline, request)
        finally:
            pipeline.store.close()

    try:
        response = asyncio.run(_call())
    except DocSearchError as e:
        logger.debug("cli_command_failed", error=type(e).__name__, message=e.message)
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1)

    typer.echo(json.dumps(response.model_dump(mode="json", exclude_none=True), indent=2))


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (defaults to HOST)"),
    port: Optional[int] = typer.Option(None, help="Port (defaults to PORT)"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Start the API server."""
    import uvicorn
    from docsearch.config import get_settings

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port
    logger.info("starting_api_server", host=host, port=port)
    uvicorn.run("docsearch.api.app:app", host=host, port=port, reload=reload)


@app.command()
def index(
    file_path: Optional[str] = typer.Option(None, "--file", help="Path of a local text file"),
    url: Optional[str] = typer.Option(None, help="http(s) URL to fetch"),
    content: Optional[str] = typer.Option(None, help="Inline text (requires --source)"),
    source: Optional[str] = typer.Option(None, help="Identifier for inline content"),
    reindex: bool = typer.Option(False, help="Replace the document if already indexed"),
):
    """Index a file, URL, or inline content."""
    request = IndexRequest(
        file_path=file_path,
        url=url,
        content=content,
        source=source,
        reindex=reindex,
    )
    _run(lambda pipeline, req: pipeline.index(req), request)


@app.command()
def search(
    query: str = typer.Argument(..., help="Natural-language query"),
    top_k: int = typer.Option(5, help="Maximum number of results"),
    min_score: Optional[float] = typer.Option(None, help="Minimum similarity score (default 0.3)"),
    source: Optional[str] = typer.Option(None, help="Only search this source"),
):
    """Search indexed documents."""
    request = SearchRequest(query=query, top_k=top_k, min_score=min_score, source_filter=source)
    _run(lambda pipeline, req: pipeline.search(req), request)


@app.command("list")
def list_documents(
    source_type: Optional[SourceType] = typer.Option(None, help="Filter by source type"),
):
    """List indexed documents."""
    _run(lambda pipeline, req: pipeline.list_documents(req), ListRequest(source_type=source_type))


@app.command()
def delete(source: str = typer.Argument(..., help="Source of the document to remove")):
    """Delete an indexed document."""
    _run(lambda pipeline, req: pipeline.delete(req), DeleteRequest(source=source))


@app.command()
def version():
    """Show version."""
    from docsearch import __version__
    typer.echo(f"DocSearch v{__version__}")


if __name__ == "__main__":
    app()
