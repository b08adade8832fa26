#!/usr/bin/env python3
"""Main entry point for the club tournament registration service."""

import logging
import os
import sys


def setup_logging(level: str = "INFO"):
    """Configure logging for the web server."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def print_usage():
    """Print usage information for local development."""

    print("Club Tournament Registration")
    print("=" * 40)
    print("Available entry points:")
    print()
    print("Web Server (JSON API):")
    print("   python main.py --web")
    print()
    print("Configuration is read from registration_config.json,")
    print("which is created with defaults on first start.")
    print()


def start_web_server():
    """Start the FastAPI web server."""
    from web.dependencies import get_config

    config = get_config()
    setup_logging(config.system.log_level)

    import uvicorn

    from web.api import app

    port = int(os.environ.get("PORT", config.system.port))

    print("Starting club registration server...")
    print(f"API Documentation: http://localhost:{port}/docs")

    uvicorn.run(app, host=config.system.host, port=port, log_level="info", access_log=True)


def main():
    """Main entry point."""
    # Check for production environment (Railway, Docker, Heroku, etc.)
    is_production = any([
        "RAILWAY_ENVIRONMENT" in os.environ,
        "PORT" in os.environ,
        "DYNO" in os.environ,  # Heroku
        os.environ.get("ENVIRONMENT") == "production"
    ])

    if is_production or "--web" in sys.argv:
        start_web_server()
    else:
        print_usage()


if __name__ == "__main__":
    main()
