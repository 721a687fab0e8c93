"""
Return Policy Chatbot - CLI Entry Point
---------------------------------------

Usage:
    policy-rag ingest                       # Embed the configured policy document
    policy-rag ingest path/to/policy.pdf    # Embed a specific document
    policy-rag ingest --clear               # Delete existing rows first
    policy-rag serve                        # Start the query service on $PORT
    policy-rag serve --port 8080

Both commands exit with status 1 when configuration is missing or the
run fails.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from policy_rag.config import settings
from policy_rag.errors import (
    ConfigurationError,
    DimensionMismatchError,
    InitializationError,
    PolicyRAGError,
)

app = typer.Typer(
    name="policy-rag",
    help="Return-policy RAG chatbot: ingestion and query service.",
    add_completion=False,
)

logger = logging.getLogger("policy_rag")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)-8s | %(name)s - %(message)s",
    )


# --- Commands -----------------------------------------------------------------

@app.command()
def ingest(
    path: Optional[Path] = typer.Argument(
        None, help="Policy document (PDF, .txt or .md). Defaults to POLICY_PATH."
    ),
    clear: bool = typer.Option(
        False, "--clear", help="Delete every existing row before writing (re-ingestion)"
    ),
    log_level: str = typer.Option(settings.log_level, "--log-level", help="Logging level"),
) -> None:
    """Load, chunk and embed the policy document into the vector table."""
    from policy_rag.ingestion.chunker import RecursiveChunker
    from policy_rag.ingestion.pipeline import ingest as run_ingestion
    from policy_rag.serving.bootstrap import build_store, validate_settings

    configure_logging(log_level)
    document = path or Path(settings.policy_path)
    logger.info("Starting ingestion of %s", document)

    try:
        validate_settings(settings)
        store = build_store(settings)
        report = run_ingestion(
            document,
            embedder=store.embedder,
            store=store,
            chunker=RecursiveChunker(settings.chunk_size, settings.chunk_overlap),
            clear=clear,
        )
    except DimensionMismatchError as exc:
        logger.error("%s", exc)
        logger.error("%s", exc.hint)
        raise typer.Exit(code=1)
    except PolicyRAGError as exc:
        logger.error("Ingestion failed: %s", exc)
        raise typer.Exit(code=1)

    typer.echo(str(report))


@app.command()
def serve(
    host: str = typer.Option(settings.host, "--host", help="Interface to bind"),
    port: int = typer.Option(settings.port, "--port", help="Port to listen on"),
    log_level: str = typer.Option(settings.log_level, "--log-level", help="Logging level"),
) -> None:
    """Initialise the AI components, then start the HTTP query service."""
    import uvicorn

    from policy_rag.serving.app import create_app
    from policy_rag.serving.bootstrap import initialize

    configure_logging(log_level)
    try:
        components = initialize(settings)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        raise typer.Exit(code=1)
    except InitializationError as exc:
        logger.exception("%s", exc)
        raise typer.Exit(code=1)

    logger.info("Server starting on port %d", port)
    uvicorn.run(create_app(components), host=host, port=port, log_level=log_level.lower())


if __name__ == "__main__":
    app()
