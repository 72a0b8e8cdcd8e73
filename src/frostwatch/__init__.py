"""Frostwatch: community-moderated sighting reports with proximity alerts."""

__version__ = "0.1.0"
