"""AgentWar type definitions.

This module exports all data model types used by the package.
"""

from agentwar.types.agents import AgentRecord, RecordParseError, RegistryIndex, parse_record
from agentwar.types.leaderboard import LeaderboardEntry, RegistryStats

__all__ = [
    # Agent records
    "AgentRecord",
    "RecordParseError",
    "RegistryIndex",
    "parse_record",
    # Leaderboard
    "LeaderboardEntry",
    "RegistryStats",
]
