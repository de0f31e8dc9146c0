"""Team pull request summaries and digests."""

__version__ = "0.1.0"
