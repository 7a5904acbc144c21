"""
Cleanup request service - business logic for cleanup request handling.
Handles Firestore CRUD operations for the cleanup_requests collection.

DESIGN NOTE:
- Every write goes through validation first; nothing is persisted on failure
- problem_label and the initial priority are derived here, not by callers
- Status and assignment changes are computed by StatusWorkflowEngine
- Concurrent writers to one document resolve as last-write-wins
"""

from datetime import datetime
from typing import Dict, List, Optional, Union
import logging
import math

from firebase_admin import firestore
from pydantic import ValidationError

from app.config.firebase import get_db
from app.core.errors import NotFound, ValidationFailed
from app.models.base import field_errors
from app.models.cleanup_request import (
    CleanupRequestCreate,
    CleanupRequestPage,
    CleanupRequestResponse,
    CleanupRequestSummary,
    CleanupRequestUpdate,
    CleanupStats,
    Pagination,
    ProblemType,
    RequestStatus,
)
from app.services.cleanup_rules import default_priority, refresh_problem_label
from app.services.search_query import CleanupSearchQuery, SearchFilters
from app.services.stats_service import get_stats_service
from app.services.status_workflow import StatusWorkflowEngine
from app.utils.firestore_helpers import snapshot_to_dict, storage_guard, to_datetime, utcnow

logger = logging.getLogger(__name__)

COLLECTION = "cleanup_requests"
TIMESTAMP_FIELDS = ("created_at", "updated_at", "estimated_completion", "actual_completion")
NESTED_FIELDS = ("other_details", "coordinates")


def _validate(model_cls, payload):
    if isinstance(payload, model_cls):
        return payload
    try:
        return model_cls.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailed(field_errors(e))


def to_response(record: Dict) -> CleanupRequestResponse:
    data = dict(record)
    for field in TIMESTAMP_FIELDS:
        data[field] = to_datetime(data.get(field))
    if not data.get("other_details"):
        data["other_details"] = None
    if not data.get("coordinates"):
        data["coordinates"] = None
    return CleanupRequestResponse.model_validate(data)


class CleanupRequestService:
    """
    Service for cleanup requests in Firestore.
    """

    def __init__(self):
        self.db = get_db()
        self.workflow = StatusWorkflowEngine()

    @property
    def collection(self):
        return self.db.collection(COLLECTION)

    def build_record(self, payload: CleanupRequestCreate, submitted_by: Optional[str], now: datetime) -> Dict:
        """
        Construction-time rules for a new request.

        other_details is only kept for 'other' requests; priority defaults to
        severity here and is never recomputed afterwards.
        """
        is_other = payload.problem_type == ProblemType.OTHER.value
        record = {
            "problem_type": payload.problem_type,
            "location": payload.location,
            "severity": payload.severity,
            "description": payload.description,
            "contact_info": payload.contact_info.model_dump(),
            "photos": [photo for photo in payload.photos if photo],
            "other_details": payload.other_details.model_dump() if is_other and payload.other_details else {},
            "coordinates": payload.coordinates.model_dump() if payload.coordinates else {},
            "status": RequestStatus.PENDING.value,
            "priority": default_priority(payload.severity, payload.priority),
            "assigned_to": "",
            "admin_notes": "",
            "estimated_completion": None,
            "actual_completion": None,
            "submitted_by": submitted_by,
            "device_info": payload.device_info or "",
            "created_at": now,
            "updated_at": now,
        }
        return refresh_problem_label(record, problem_type_changed=True)

    def create_request(
        self,
        payload: Union[CleanupRequestCreate, Dict],
        submitted_by: Optional[str] = None,
    ) -> CleanupRequestResponse:
        """
        Validate and store a new cleanup request.

        Args:
            payload: Validated model or raw dict (camelCase or snake_case)
            submitted_by: User id of a logged-in submitter, None for anonymous

        Returns:
            The persisted request including derived fields and generated id
        """
        request = _validate(CleanupRequestCreate, payload)
        record = self.build_record(request, submitted_by, utcnow())

        with storage_guard("create cleanup request"):
            doc_ref = self.collection.document()
            doc_ref.set(record)

        logger.info(
            f"Cleanup request saved: {doc_ref.id} "
            f"(type={record['problem_type']}, severity={record['severity']}, anonymous={submitted_by is None})"
        )
        record["id"] = doc_ref.id
        return to_response(record)

    def _load(self, request_id: str):
        with storage_guard("read cleanup request"):
            doc_ref = self.collection.document(request_id)
            record = snapshot_to_dict(doc_ref.get())
        if record is None:
            raise NotFound(f"Cleanup request {request_id} not found")
        return doc_ref, record

    def _write(self, doc_ref, changes: Dict, action: str) -> CleanupRequestResponse:
        changes["updated_at"] = utcnow()
        with storage_guard(action):
            doc_ref.update(changes)
            record = snapshot_to_dict(doc_ref.get())
        if record is None:
            raise NotFound(f"Cleanup request {doc_ref.id} not found")
        return to_response(record)

    def get_request(self, request_id: str) -> CleanupRequestResponse:
        _, record = self._load(request_id)
        return to_response(record)

    def search(self, query: str = "", filters: Optional[SearchFilters] = None) -> List[CleanupRequestResponse]:
        """
        Free-text search plus structured filters, newest first.
        An empty query with no filters returns every request.
        """
        search = CleanupSearchQuery(query, filters)
        with storage_guard("search cleanup requests"):
            records = search.run(self.collection)
        logger.info(f"Search q={search.query!r} filters={search.filters} -> {len(records)} requests")
        return [to_response(record) for record in records]

    def list_requests(
        self,
        query: str = "",
        filters: Optional[SearchFilters] = None,
        page: int = 1,
        limit: int = 50,
    ) -> CleanupRequestPage:
        """Paged view over search() for the list screens."""
        if page < 1 or limit < 1:
            raise ValidationFailed([{"field": "page" if page < 1 else "limit", "message": "Must be at least 1"}])
        results = self.search(query, filters)
        start = (page - 1) * limit
        return CleanupRequestPage(
            requests=results[start:start + limit],
            pagination=Pagination(
                current_page=page,
                total_pages=math.ceil(len(results) / limit),
                total_requests=len(results),
            ),
        )

    def recent(self, limit: int = 10) -> List[CleanupRequestSummary]:
        with storage_guard("list recent cleanup requests"):
            query = self.collection.order_by("created_at", direction=firestore.Query.DESCENDING).limit(limit)
            records = [snapshot_to_dict(doc) for doc in query.stream()]
        return [CleanupRequestSummary.model_validate(to_response(r).model_dump()) for r in records]

    def update_status(self, request_id: str, new_status: str, notes: Optional[str] = None) -> CleanupRequestResponse:
        """
        Move a request through the lifecycle.

        Raises InvalidStatus before touching storage when new_status is unknown.
        """
        self.workflow.coerce_status(new_status)
        if notes is not None and len(notes.strip()) > 500:
            raise ValidationFailed([{"field": "adminNotes", "message": "Admin notes cannot exceed 500 characters"}])

        doc_ref, record = self._load(request_id)
        changes = self.workflow.status_update(record, new_status, notes.strip() if notes else None, utcnow())
        result = self._write(doc_ref, changes, "update cleanup request status")
        logger.info(f"Cleanup request {request_id} status: {record.get('status')} -> {result.status}")
        return result

    def assign(
        self,
        request_id: str,
        assignee: str,
        estimated_completion: Optional[str] = None,
    ) -> CleanupRequestResponse:
        assignee = (assignee or "").strip()
        if not assignee:
            raise ValidationFailed([{"field": "assignedTo", "message": "Assignee is required"}])

        doc_ref, record = self._load(request_id)
        changes = self.workflow.assignment(record, assignee, estimated_completion)
        result = self._write(doc_ref, changes, "assign cleanup request")
        logger.info(f"Cleanup request {request_id} assigned to {assignee}")
        return result

    def update_details(self, request_id: str, payload: Union[CleanupRequestUpdate, Dict]) -> CleanupRequestResponse:
        """
        Admin edit of request fields.

        Changing severity leaves priority alone. The label is recomputed only
        when problem_type changes (or the custom type changes for 'other').
        Partial otherDetails and coordinates edits are merged into the stored maps.
        """
        update = _validate(CleanupRequestUpdate, payload)
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise ValidationFailed([{"field": "__root__", "message": "No fields to update"}])

        doc_ref, record = self._load(request_id)
        merged = {**record, **changes}
        for field in NESTED_FIELDS:
            if field in changes:
                merged[field] = {**(record.get(field) or {}), **changes[field]}
        type_changed = "problem_type" in changes and changes["problem_type"] != record.get("problem_type")

        if merged.get("problem_type") != ProblemType.OTHER.value:
            merged["other_details"] = {}
        elif "custom_problem_type" in changes.get("other_details", {}):
            previous = (record.get("other_details") or {}).get("custom_problem_type")
            # New custom text for an 'other' request is a change of problem type in effect
            type_changed = type_changed or changes["other_details"]["custom_problem_type"] != previous

        refresh_problem_label(merged, problem_type_changed=type_changed)

        writes = {key: merged[key] for key in changes}
        writes["problem_label"] = merged["problem_label"]
        writes["other_details"] = merged["other_details"]
        return self._write(doc_ref, writes, "update cleanup request")

    def delete_request(self, request_id: str) -> str:
        doc_ref, _ = self._load(request_id)
        with storage_guard("delete cleanup request"):
            doc_ref.delete()
        logger.info(f"Cleanup request deleted: {request_id}")
        return request_id

    def get_stats(self) -> CleanupStats:
        return get_stats_service().get_request_stats()


# Global service instance (singleton pattern)
_cleanup_request_service = None


def get_cleanup_request_service() -> CleanupRequestService:
    """
    Get or create CleanupRequestService singleton instance.
    """
    global _cleanup_request_service
    if _cleanup_request_service is None:
        _cleanup_request_service = CleanupRequestService()
    return _cleanup_request_service
