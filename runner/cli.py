from __future__ import annotations

import argparse
import os


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments for the smoke runner."""
    parser = argparse.ArgumentParser(description="Accounts API smoke runner")
    parser.add_argument("--base-url", default=os.getenv("BASE_URL", "http://127.0.0.1:3000"))
    parser.add_argument("--timeout", type=float, default=20.0, help="seconds to wait for /health")
    return parser.parse_args(argv)
