"""Command line entry point."""

import argparse

import uvicorn

from .config import load_config
from .server import create_app


def main():
    """Parse arguments and run the server with uvicorn."""
    parser = argparse.ArgumentParser(description="Rick and Morty MCP Server")
    parser.add_argument("--config", default=None, help="Path to a JSON configuration file")
    parser.add_argument("--host", default=None, help="Bind address (default: from config, 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None,
                        help="Listen port (default: from config or $PORT, 3000)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    args = parser.parse_args()

    config = load_config(args.config)
    host = args.host or config.server.host
    port = args.port if args.port is not None else config.server.port

    app = create_app(config=config)
    uvicorn.run(
        app,
        host=host,
        port=port,
        reload=args.reload
    )


if __name__ == "__main__":
    main()
