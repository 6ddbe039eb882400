"""ppl-coach: guided push/pull/legs workout coach with progressive overload."""

__version__ = "0.3.0"
