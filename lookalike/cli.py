"""Command-line interface for the lookalike search service."""

import argparse
import base64
import sys
from pathlib import Path

import uvicorn

from .api.bedrock import create_runtime_client
from .config import Settings
from .errors import ConfigError, LookalikeError
from .logging_utils import setup_logging
from .server.app import build_pipeline
from .storage.vector_search import SimilaritySearchClient, connect_database


def load_settings() -> Settings:
    """Read settings from the environment, exiting on a config error."""
    try:
        return Settings.from_env()
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)


def serve(args):
    """Run the HTTP server."""
    settings = load_settings()
    setup_logging(settings.debug)

    uvicorn.run(
        "lookalike.server.app:create_app",
        factory=True,
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level="debug" if settings.debug else "info",
    )


def search(args):
    """Run the full pipeline on a local image file."""
    settings = load_settings()
    setup_logging(settings.debug)

    path = Path(args.path)
    if not path.is_file():
        print(f"Error: {path} does not exist")
        sys.exit(1)

    data_url = "data:image/jpeg;base64," + base64.b64encode(path.read_bytes()).decode("utf-8")

    try:
        client, db = connect_database(settings)
    except LookalikeError as e:
        print(f"Error: {e}")
        sys.exit(1)

    try:
        pipeline = build_pipeline(settings, db, create_runtime_client(settings))
        outcome = pipeline.run(data_url)
    except LookalikeError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        client.close()

    print(f"Matches: {len(outcome.images)}\n")
    print(outcome.description)


def ping(args):
    """Check the document store connection."""
    settings = load_settings()
    setup_logging(settings.debug)

    try:
        client, db = connect_database(settings)
    except LookalikeError as e:
        print(f"Error: {e}")
        sys.exit(1)

    try:
        count = SimilaritySearchClient.from_database(db, settings).count()
    except LookalikeError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        client.close()

    print(f"Connected to '{db.name}': {count} reference image(s) in '{settings.mongodb_collection}'")


def main():
    parser = argparse.ArgumentParser(
        description="Lookalike Search - find and describe visually similar reference images"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    serve_parser.add_argument("--host", default=None, help="Host to bind to (default: $HOST or 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to bind to (default: $PORT or 3001)")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    serve_parser.set_defaults(func=serve)

    # Search command
    search_parser = subparsers.add_parser("search", help="Search with a local image file")
    search_parser.add_argument("path", help="Image file to search with")
    search_parser.set_defaults(func=search)

    # Ping command
    ping_parser = subparsers.add_parser("ping", help="Check the document store connection")
    ping_parser.set_defaults(func=ping)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
