#!/usr/bin/env python3
"""
Loan Engine Entry Point

Starts the FastAPI server with the loan calculation endpoints.
"""

import sys

from loan_engine.api import run_server
from loan_engine.config import get_config
from loan_engine.logging_config import setup_logging


if __name__ == "__main__":
    config = get_config()
    setup_logging(config.log_level, fmt=config.log_format, log_file=config.log_file)

    print("Starting Loan Engine...")
    print(f"Rate tiers: {', '.join(str(tier) for tier in config.rate_tiers)}")
    print(f"API available at: http://localhost:{config.api_port}")
    print(f"Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server(
            host=config.api_host,
            port=config.api_port,
            debug=False  # Set to True for development
        )
    except KeyboardInterrupt:
        print("\nShutting down Loan Engine...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
