#!/usr/bin/env python3
# =============================================================================
# scripts/generate_docs.py - OpenAPI Documentation Generator
# =============================================================================
# Writes the OpenAPI YAML document for the routing table the server uses.
#
# Usage:
#   python scripts/generate_docs.py
#   python scripts/generate_docs.py --output docs/api.yaml
#
# Title, version and server URL come from API_TITLE / API_VERSION /
# API_SERVER_URL (environment or .env).
# =============================================================================

import argparse
import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.artifacts import write_docs
from app.config import get_settings
from app.routers import routing
from core.errors import ConfigurationError


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate the OpenAPI YAML document")
    parser.add_argument("--output", help="Output file (default: DOCS_OUTPUT_PATH)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    try:
        settings = get_settings()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("Generating docs...")
    path = write_docs(routing, settings, args.output)
    print(f"OpenAPI docs generated at {path} ({len(routing)} operations)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
