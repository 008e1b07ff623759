"""GitHub Projects Analyzer: dependency checks and health metrics for GitHub Projects."""

__version__ = "0.1.0"
