"""
Leaderboard ranking over a snapshot of agent records.

Scores are publicly decodable and are not gated; balances are never decoded
here.
"""

from collections.abc import Sequence

from agentwar.codec import CiphertextCodec, default_codec
from agentwar.registry import is_owner
from agentwar.types.agents import AgentRecord
from agentwar.types.leaderboard import LeaderboardEntry, RegistryStats

DEFAULT_LIMIT = 10


def _scored(
    records: Sequence[AgentRecord], codec: CiphertextCodec
) -> list[tuple[AgentRecord, int | float]]:
    # sorted() is stable, so equal scores keep their input order
    pairs = [(record, codec.decode(record.encrypted_score)) for record in records]
    return sorted(pairs, key=lambda pair: pair[1], reverse=True)


def rank(
    records: Sequence[AgentRecord],
    limit: int = DEFAULT_LIMIT,
    codec: CiphertextCodec | None = None,
) -> list[AgentRecord]:
    """
    Rank records by decoded score, highest first.

    Args:
        records: Registry snapshot
        limit: Maximum number of records returned
        codec: Codec for the score field (default: reference codec)

    Returns:
        Up to ``limit`` records; ties keep their relative input order

    Raises:
        ValueError: If limit is negative
        MalformedCiphertextError: If a score token cannot be decoded
    """
    return [entry.record for entry in leaderboard(records, limit, codec)]


def leaderboard(
    records: Sequence[AgentRecord],
    limit: int = DEFAULT_LIMIT,
    codec: CiphertextCodec | None = None,
) -> list[LeaderboardEntry]:
    """Like rank(), returning 1-based ranks with the decoded scores."""
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")
    scored = _scored(records, codec or default_codec())
    return [
        LeaderboardEntry(rank=position, record=record, score=score)
        for position, (record, score) in enumerate(scored[:limit], start=1)
    ]


def summarize(
    records: Sequence[AgentRecord],
    viewer: str | None = None,
    codec: CiphertextCodec | None = None,
) -> RegistryStats:
    """
    Aggregate a registry snapshot.

    Args:
        records: Registry snapshot
        viewer: Account whose agents are counted in ``owned_agents``
        codec: Codec for the score field

    Returns:
        RegistryStats with count, mean score (0.0 when empty) and owned count
    """
    codec = codec or default_codec()
    total = len(records)
    score_sum = sum(codec.decode(record.encrypted_score) for record in records)
    return RegistryStats(
        total_agents=total,
        average_score=score_sum / total if total else 0.0,
        owned_agents=sum(1 for record in records if is_owner(record, viewer)),
    )
