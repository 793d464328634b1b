"""Leaderboard data models."""

from dataclasses import dataclass

from agentwar.types.agents import AgentRecord


@dataclass
class LeaderboardEntry:
    """A ranked agent with its decoded score."""

    rank: int  # 1-based
    record: AgentRecord
    score: int | float


@dataclass
class RegistryStats:
    """Aggregate view over a registry snapshot."""

    total_agents: int
    average_score: float
    owned_agents: int
