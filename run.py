#!/usr/bin/env python3
"""
Bank Core Entry Point

Starts the FastAPI server (port 8090 unless BANKCORE_API_PORT is set).
"""

import sys

from bank_core.api import run_server


if __name__ == "__main__":
    try:
        run_server()
    except KeyboardInterrupt:
        print("\nShutting down Bank Core...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
