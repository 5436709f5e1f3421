"""Run the insider pipeline once for a ticker and print the JSON report.

Usage:
  python scripts/insider_report.py TSLA
  python scripts/insider_report.py TSLA --extended --max-filings 20

Notes:
  - Set POLYGON_API_KEY for company details, prices and the filing index.
    Without it, filings are discovered through SEC full-text search.
  - SEC_USER_AGENT should identify you (EDGAR rejects anonymous clients).
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


from insider_lens.config import load_config
from insider_lens.pipeline import build_report


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("ticker", help="Ticker symbol, e.g. TSLA")
    ap.add_argument("--extended", action="store_true", help="Use the extended (180 day) lookback")
    ap.add_argument("--max-filings", type=int, default=None, help="Cap on filings to parse")
    args = ap.parse_args()

    ticker = args.ticker.strip().upper()
    if not ticker:
        print("Ticker is blank")
        sys.exit(2)

    cfg = load_config()
    report = build_report(cfg, ticker, extended=args.extended, max_filings=args.max_filings)
    print(json.dumps(report.to_dict(), indent=2))


if __name__ == "__main__":
    main()
