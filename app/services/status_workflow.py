"""
Status Workflow Engine - cleanup request lifecycle.

    pending -> in-progress -> completed
    pending | in-progress -> cancelled

completed and cancelled are terminal for status updates. Re-applying the
current status is a no-op transition. Assignment always lands on in-progress;
whether it may reopen a terminal request is governed by
ALLOW_REASSIGN_FROM_TERMINAL.
"""

from datetime import datetime
from typing import Dict, List, Optional
import logging

from app.core.errors import InvalidDate, InvalidStatus, InvalidTransition
from app.core.settings import settings
from app.models.cleanup_request import RequestStatus
from app.utils.firestore_helpers import to_datetime

logger = logging.getLogger(__name__)


def parse_datetime(value: str, field: str) -> datetime:
    """
    Parse an ISO-8601 date or datetime string.

    Raises InvalidDate naming the field when the value is unparseable.
    """
    try:
        parsed = to_datetime(value.strip()) if isinstance(value, str) and value.strip() else None
    except ValueError:
        parsed = None
    if parsed is None:
        raise InvalidDate(field, str(value))
    return parsed


class StatusWorkflowEngine:
    """
    State machine for cleanup request status transitions.

    Methods return the document changes to persist; they never write.
    """

    TERMINAL_STATES = (RequestStatus.COMPLETED, RequestStatus.CANCELLED)

    # Allowed transitions map: {from_status: [to_status, ...]}
    ALLOWED_TRANSITIONS: Dict[RequestStatus, List[RequestStatus]] = {
        RequestStatus.PENDING: [RequestStatus.IN_PROGRESS, RequestStatus.CANCELLED],
        RequestStatus.IN_PROGRESS: [RequestStatus.COMPLETED, RequestStatus.CANCELLED],
        RequestStatus.COMPLETED: [],
        RequestStatus.CANCELLED: [],
    }

    @classmethod
    def allowed_values(cls) -> List[str]:
        return [status.value for status in RequestStatus]

    @classmethod
    def coerce_status(cls, value: str) -> RequestStatus:
        """Map a raw value to RequestStatus or raise InvalidStatus."""
        try:
            return RequestStatus(value)
        except ValueError:
            raise InvalidStatus(str(value), cls.allowed_values())

    @classmethod
    def is_valid_transition(cls, from_status: str, to_status: str) -> bool:
        try:
            from_enum = RequestStatus(from_status)
            to_enum = RequestStatus(to_status)
        except ValueError:
            return False

        if from_enum == to_enum:
            return True

        return to_enum in cls.ALLOWED_TRANSITIONS.get(from_enum, [])

    @classmethod
    def get_allowed_transitions(cls, current_status: str) -> List[str]:
        try:
            current_enum = RequestStatus(current_status)
        except ValueError:
            return []
        return [status.value for status in cls.ALLOWED_TRANSITIONS.get(current_enum, [])]

    @classmethod
    def status_update(
        cls,
        record: Dict,
        new_status: str,
        notes: Optional[str],
        now: datetime,
    ) -> Dict:
        """
        Changes for update_status.

        - Unknown status -> InvalidStatus (before anything is persisted)
        - Forbidden transition -> InvalidTransition
        - notes, when given, overwrite admin_notes
        - entering completed stamps actual_completion once
        """
        target = cls.coerce_status(new_status)
        current = record.get("status", RequestStatus.PENDING.value)

        if not cls.is_valid_transition(current, target.value):
            allowed = cls.get_allowed_transitions(current)
            raise InvalidTransition(
                f"Invalid status transition: {current} -> {target.value}. "
                f"Allowed transitions from {current}: {allowed}"
            )

        changes: Dict = {"status": target.value}
        if notes:
            changes["admin_notes"] = notes
        if target == RequestStatus.COMPLETED and not record.get("actual_completion"):
            changes["actual_completion"] = now
        return changes

    @classmethod
    def assignment(
        cls,
        record: Dict,
        assignee: str,
        estimated_completion: Optional[str] = None,
    ) -> Dict:
        """
        Changes for assign_to: set assignee and force in-progress.

        The estimated date is parsed before anything else so a bad date
        leaves the record untouched.
        """
        changes: Dict = {}
        if estimated_completion:
            changes["estimated_completion"] = parse_datetime(estimated_completion, "estimatedCompletion")

        current = record.get("status", RequestStatus.PENDING.value)
        if current in [s.value for s in cls.TERMINAL_STATES]:
            if not settings.ALLOW_REASSIGN_FROM_TERMINAL:
                raise InvalidTransition(f"Cannot assign a request that is already {current}")
            logger.info(f"Reopening {current} request {record.get('id')} as in-progress via assignment")

        changes["assigned_to"] = assignee
        changes["status"] = RequestStatus.IN_PROGRESS.value
        return changes
