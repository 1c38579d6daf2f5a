#!/usr/bin/env python3
"""
Order Engine Runner
===================

Usage:
    python run_app.py                    # Development mode with auto-reload
    python run_app.py --mode prod        # Production mode
    python run_app.py --port 8001        # Custom port
    python run_app.py --host 127.0.0.1   # Custom host
"""

import argparse
import sys

import uvicorn


def run_app(host: str, port: int, reload: bool, workers: int) -> None:
    """Run the FastAPI application through its factory"""
    print(f"Starting Order Engine on {host}:{port}")
    print(f"API Docs: http://{host}:{port}/api/docs")

    uvicorn.run(
        "orderengine.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=None if reload else workers,
        log_level="info"
    )


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Order Engine Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--mode",
        choices=["dev", "prod"],
        default="dev",
        help="Server mode (default: dev)"
    )
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    parser.add_argument("--workers", type=int, default=4, help="Worker processes in prod mode (default: 4)")

    args = parser.parse_args()

    run_app(args.host, args.port, reload=args.mode == "dev", workers=args.workers)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nServer stopped by user")
        sys.exit(0)
