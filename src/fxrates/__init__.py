"""Exchange-rate aggregation and conversion engine."""

__version__ = "0.1.0"
