#!/usr/bin/env python3
"""
Gesture Transfer Entry Point

Starts the FastAPI server with host, port and workers taken from the
GESTURE_TRANSFER_* environment settings.
"""

import sys

import uvicorn

from gesture_transfer.config import get_config


def run_server(host: str, port: int, workers: int = 1, debug: bool = False):
    """Run the FastAPI server"""
    uvicorn.run(
        "gesture_transfer.api:create_app",
        factory=True,
        host=host,
        port=port,
        workers=workers,
        reload=debug,
        log_level="info"
    )


if __name__ == "__main__":
    settings = get_config()
    print("💱 Starting Gesture Transfer...")
    print(f"🌐 API available at: http://localhost:{settings.api_port}")
    print(f"📚 Documentation at: http://localhost:{settings.api_port}/docs")
    print()

    try:
        run_server(host=settings.api_host, port=settings.api_port, workers=settings.api_workers)
    except KeyboardInterrupt:
        print("\n👋 Shutting down Gesture Transfer...")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)
