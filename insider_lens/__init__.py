"""Insider trade lens (SEC Form 4) - Backend.

Finds a ticker's recent insider filings, parses the ownership documents and
scores what the insiders did:
- Conviction is a per-trade 0-100 score.
- Confidence is a per-ticker 0-100 score with the signals that produced it.

Every failure upstream degrades to an empty result, never an error.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
