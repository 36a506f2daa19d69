"""Chat-export store with live queries and canonical conversation merging."""

__version__ = "0.1.0"
