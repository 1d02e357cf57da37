"""Pull request reviewer assignment service: teams, reviewers and merges over HTTP with SQLite storage."""

__version__ = "1.0.0"