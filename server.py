#!/usr/bin/env python3
"""VOD Dashboard - Main Entry Point

Usage:
    python server.py

The server will:
1. Load configuration from config/config.yaml (or VOD_DASHBOARD_* env vars)
2. Initialize logging
3. Start the HTTP server on the configured host and port
"""

import sys
from pathlib import Path

# Add project directory to path
sys.path.insert(0, str(Path(__file__).parent))

from vod_dashboard.main import run_server


if __name__ == "__main__":
    run_server()
