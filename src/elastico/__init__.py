"""elastico: search and display log lines stored in Elasticsearch."""

__version__ = "0.2.0"
