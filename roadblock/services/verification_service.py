"""
Verification Service - admission control for confirm/dismiss votes.

DESIGN PRINCIPLES:
- At most one vote per (user, incident)
- Every rejection happens before anything is written
- Incident counts never change without a stored Verification
"""

from datetime import datetime, timezone
import logging

from roadblock.core.errors import DuplicateVoteError, InvalidActionError, NotFoundError
from roadblock.core.settings import settings
from roadblock.models.verification import Verification, VerificationAction, VerificationResult
from roadblock.services.lifecycle import LifecycleState, apply_verification, is_deactivation
from roadblock.services.storage import IncidentRepository, verification_key

logger = logging.getLogger(__name__)


def parse_action(action) -> VerificationAction:
    try:
        return VerificationAction(action)
    except (ValueError, TypeError):
        raise InvalidActionError()


class VerificationService:
    """Service for submitting verifications on incidents."""

    def __init__(self, repository: IncidentRepository, dismiss_threshold: int = None):
        self.repository = repository
        self.dismiss_threshold = settings.DISMISS_THRESHOLD if dismiss_threshold is None else dismiss_threshold

    async def submit_verification(self, voter_id: str, incident_id: str, action) -> VerificationResult:
        """
        Record a vote and update the incident's counts and active flag.

        Checks, in order:
        1. Incident exists                  -> NotFoundError
        2. Voter has not voted on it yet    -> DuplicateVoteError
        3. Action is confirm or dismiss     -> InvalidActionError

        The insert and incident update are then committed atomically by the
        repository, which repeats checks 1 and 2 under its lock/transaction
        so concurrent votes can't slip past them.
        """
        incident = await self.repository.get_incident(incident_id)
        if incident is None:
            logger.warning(f"Verification rejected: incident {incident_id} not found")
            raise NotFoundError()

        if await self.repository.find_verification(voter_id, incident_id) is not None:
            logger.warning(f"Verification rejected: user={voter_id} already voted on incident={incident_id}")
            raise DuplicateVoteError()

        try:
            parsed = parse_action(action)
        except InvalidActionError:
            logger.warning(f"Verification rejected: invalid action {action!r} on incident={incident_id}")
            raise

        verification = Verification(
            id=verification_key(incident_id, voter_id),
            incident_id=incident_id,
            user_id=voter_id,
            action=parsed,
            timestamp=datetime.now(timezone.utc),
        )

        transitions = []

        def transition(state: LifecycleState) -> LifecycleState:
            after = apply_verification(state, parsed, self.dismiss_threshold)
            transitions.append((state, after))
            return after

        try:
            updated = await self.repository.commit_verification(verification, transition)
        except DuplicateVoteError:
            logger.warning(f"Verification rejected at commit: user={voter_id} already voted on incident={incident_id}")
            raise

        logger.info(
            f"Verification accepted: user={voter_id} {parsed.value} incident={incident_id} "
            f"(confirm={updated.confirm_count}, dismiss={updated.dismiss_count})"
        )
        # The last recorded transition is the one that was committed.
        if transitions and is_deactivation(*transitions[-1]):
            logger.info(f"Incident {incident_id} deactivated after {updated.dismiss_count} dismissals")

        return VerificationResult(verification=verification, incident=updated)
