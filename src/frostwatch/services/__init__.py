# src/frostwatch/services/__init__.py
"""Business logic services for the Frostwatch application."""

from .change_feed import PollingChangeFeed, PushChangeFeed, ReportChangeFeed
from .comments import CommentService
from .identity import IdentityCache, IdentityService, VoterIdentity
from .location import IpGeolocationClient
from .proximity import ProximityMonitor
from .reports import ReportRegistry
from .vote_ledger import VoteLedger

__all__ = [
    "CommentService",
    "IdentityCache",
    "IdentityService",
    "IpGeolocationClient",
    "PollingChangeFeed",
    "ProximityMonitor",
    "PushChangeFeed",
    "ReportChangeFeed",
    "ReportRegistry",
    "VoteLedger",
    "VoterIdentity",
]
