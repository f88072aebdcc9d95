"""Forum Stage: reply creation pipeline for threaded discussion forums."""

__version__ = "0.1.0"
