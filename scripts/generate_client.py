#!/usr/bin/env python3
# =============================================================================
# scripts/generate_client.py - Typed Client Generator
# =============================================================================
# Writes a typed httpx client with one method per endpoint.
#
# Usage:
#   python scripts/generate_client.py
#   python scripts/generate_client.py --output generated/client.py
# =============================================================================

import argparse
import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.artifacts import write_client
from app.config import get_settings
from app.routers import routing
from core.errors import ConfigurationError


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate the typed API client")
    parser.add_argument("--output", help="Output file (default: CLIENT_OUTPUT_PATH)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    try:
        settings = get_settings()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("Generating client...")
    path = write_client(routing, settings, args.output)
    print(f"Client generated at {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
