# src/frostwatch/schemas/identity.py
"""Anonymous identity schemas."""

from .common import VoterIdentityFields


class IdentityResponse(VoterIdentityFields):
    """Hashed identity the client echoes back on votes, comments and flags."""
