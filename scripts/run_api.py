"""Serve the insider trades API.

Usage:
  python scripts/run_api.py
  python scripts/run_api.py --port 8080 --reload

Host and port default to API_HOST / API_PORT (0.0.0.0:8000).
"""

import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import uvicorn


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--host", default=os.environ.get("API_HOST", "0.0.0.0"))
    ap.add_argument("--port", type=int, default=int(os.environ.get("API_PORT", "8000")))
    ap.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = ap.parse_args()

    print(f"[run_api] Serving insider_lens.api.server:app on {args.host}:{args.port}")
    uvicorn.run("insider_lens.api.server:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
