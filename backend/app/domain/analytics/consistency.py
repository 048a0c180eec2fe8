"""
Cross-checks between the two sides of the solve relation.

A solve is stored from the user's side (``User.solved_challenges``) and
from the challenge's side (``Challenge.solved_by``). The analytics engine
never repairs a mismatch: each metric keeps reading the side it always
reads, and this module only reports or rejects the divergence.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Set, Tuple
from uuid import UUID

import structlog

from app.domain.analytics.errors import ComputationFault
from app.domain.challenges.entities import Challenge
from app.domain.users.entities import User

logger = structlog.get_logger(__name__)


class ConsistencyMode(str, Enum):
    """What to do when the two sides disagree."""
    IGNORE = "ignore"
    WARN = "warn"
    STRICT = "strict"


class DivergenceSide(str, Enum):
    """Which side holds the solve the other side is missing."""
    USER_ONLY = "user_only"
    CHALLENGE_ONLY = "challenge_only"


@dataclass(frozen=True)
class SolveDivergence:
    user_id: UUID
    challenge_id: UUID
    side: DivergenceSide


def find_solve_divergences(
    users: Sequence[User],
    challenges: Sequence[Challenge],
) -> List[SolveDivergence]:
    """
    List solves recorded on only one side.

    Only pairs whose user and challenge are both present in the given
    collections are compared, so partial fetches do not produce noise.
    Records with unloaded relations are skipped.
    """
    user_ids = {user.id for user in users}
    challenge_ids = {challenge.id for challenge in challenges}

    from_users: Set[Tuple[UUID, UUID]] = set()
    for user in users:
        for solved in user.solved_challenges or ():
            if solved.id in challenge_ids:
                from_users.add((user.id, solved.id))

    from_challenges: Set[Tuple[UUID, UUID]] = set()
    for challenge in challenges:
        for solver in challenge.solved_by or ():
            if solver.id in user_ids:
                from_challenges.add((solver.id, challenge.id))

    divergences = [
        SolveDivergence(user_id, challenge_id, DivergenceSide.USER_ONLY)
        for user_id, challenge_id in sorted(from_users - from_challenges, key=str)
    ]
    divergences.extend(
        SolveDivergence(user_id, challenge_id, DivergenceSide.CHALLENGE_ONLY)
        for user_id, challenge_id in sorted(from_challenges - from_users, key=str)
    )
    return divergences


def enforce_solve_consistency(
    users: Sequence[User],
    challenges: Sequence[Challenge],
    mode: ConsistencyMode = ConsistencyMode.WARN,
) -> List[SolveDivergence]:
    """
    Apply ``mode`` to the divergences between users and challenges.

    Raises:
        ComputationFault: in strict mode, when any divergence exists
    """
    if mode == ConsistencyMode.IGNORE:
        return []

    divergences = find_solve_divergences(users, challenges)
    if not divergences:
        return divergences

    user_only = sum(1 for d in divergences if d.side == DivergenceSide.USER_ONLY)
    challenge_only = len(divergences) - user_only

    if mode == ConsistencyMode.STRICT:
        raise ComputationFault(
            f"solve relation diverges: {user_only} user-only, {challenge_only} challenge-only"
        )

    logger.warning(
        "Solve relation diverges",
        user_only=user_only,
        challenge_only=challenge_only,
    )
    return divergences
