#!/usr/bin/env python3
"""
Account Link Entry Point

Starts the FastAPI server with the account link service.
"""

import sys

import uvicorn

from accountlink.config import get_config


def run_server(host: str, port: int, debug: bool = False):
    """Run the FastAPI server"""
    uvicorn.run(
        "accountlink.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=debug,
        log_level="info"
    )


if __name__ == "__main__":
    config = get_config()
    print(f"Starting Account Link API on http://{config.api_host}:{config.api_port}")
    print(f"Documentation at: http://localhost:{config.api_port}/docs")

    try:
        run_server(host=config.api_host, port=config.api_port)
    except KeyboardInterrupt:
        print("\nShutting down Account Link API...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
