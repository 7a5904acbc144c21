"""
Search & filter query builder for cleanup requests.

Structured filters are pushed down to Firestore (equality on status,
severity and problem_type, an inclusive created_at range). Firestore has no
substring matching, so the free-text part runs as a Python-side predicate
over the returned documents, OR-ed across the searchable text fields.
"""

from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Dict, List, Optional
import re

from app.core.errors import ValidationFailed
from app.models.cleanup_request import ProblemType, RequestStatus, Severity
from app.services.status_workflow import parse_datetime
from app.utils.firestore_helpers import snapshot_to_dict, to_datetime, where_filter

# Field paths searched by the free-text query
TEXT_SEARCH_FIELDS = (
    "location",
    "description",
    "contact_info.name",
    "other_details.custom_problem_type",
    "problem_label",
)

# Sentinel the list screens send for "no filter"
ALL = "all"

DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _field_value(record: Dict, field_path: str) -> Optional[str]:
    value = record
    for part in field_path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value if isinstance(value, str) else None


def text_matches(record: Dict, query: str) -> bool:
    """Case-insensitive substring match on any searchable field."""
    needle = query.strip().casefold()
    if not needle:
        return True
    for field_path in TEXT_SEARCH_FIELDS:
        value = _field_value(record, field_path)
        if value and needle in value.casefold():
            return True
    return False


def _enum_filter(value: Optional[str], enum_cls, field: str, errors: List[Dict]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value or value.lower() == ALL:
        return None
    allowed = [member.value for member in enum_cls]
    if value not in allowed:
        errors.append({"field": field, "message": f"'{value}' is not a valid {field}. Allowed: {', '.join(allowed)}"})
        return None
    return value


def _date_bound(value: Optional[str], field: str, end_of_day: bool, errors: List[Dict]) -> Optional[datetime]:
    if value is None or not value.strip():
        return None
    try:
        parsed = parse_datetime(value, field)
    except ValidationFailed as e:
        errors.extend(e.errors)
        return None
    # A bare date as the upper bound covers that whole day
    if end_of_day and DATE_ONLY.match(value.strip()):
        parsed = datetime.combine(parsed.date(), time.max, tzinfo=parsed.tzinfo)
    return parsed


@dataclass
class SearchFilters:
    status: Optional[str] = None
    severity: Optional[str] = None
    problem_type: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    @classmethod
    def from_params(
        cls,
        status: Optional[str] = None,
        severity: Optional[str] = None,
        problem_type: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> "SearchFilters":
        """
        Build filters from raw request parameters.

        "all" and blank values mean no filter. Every bad parameter is
        reported at once as a ValidationFailed.
        """
        errors: List[Dict] = []
        filters = cls(
            status=_enum_filter(status, RequestStatus, "status", errors),
            severity=_enum_filter(severity, Severity, "severity", errors),
            problem_type=_enum_filter(problem_type, ProblemType, "problemType", errors),
            date_from=_date_bound(date_from, "dateFrom", False, errors),
            date_to=_date_bound(date_to, "dateTo", True, errors),
        )
        if errors:
            raise ValidationFailed(errors)
        return filters

    def is_empty(self) -> bool:
        return not any([self.status, self.severity, self.problem_type, self.date_from, self.date_to])


class CleanupSearchQuery:
    """
    A free-text query plus structured filters.

    apply() narrows a Firestore collection/query; matches() is the full
    predicate and is safe to run on documents from any source.
    """

    def __init__(self, query: str = "", filters: Optional[SearchFilters] = None):
        self.query = (query or "").strip()
        self.filters = filters or SearchFilters()

    def apply(self, collection_ref):
        query = collection_ref
        if self.filters.status:
            query = where_filter(query, "status", "==", self.filters.status)
        if self.filters.severity:
            query = where_filter(query, "severity", "==", self.filters.severity)
        if self.filters.problem_type:
            query = where_filter(query, "problem_type", "==", self.filters.problem_type)
        if self.filters.date_from:
            query = where_filter(query, "created_at", ">=", self.filters.date_from)
        if self.filters.date_to:
            query = where_filter(query, "created_at", "<=", self.filters.date_to)
        return query

    def matches(self, record: Dict) -> bool:
        f = self.filters
        if f.status and record.get("status") != f.status:
            return False
        if f.severity and record.get("severity") != f.severity:
            return False
        if f.problem_type and record.get("problem_type") != f.problem_type:
            return False
        created_at = record.get("created_at")
        if f.date_from and (created_at is None or created_at < f.date_from):
            return False
        if f.date_to and (created_at is None or created_at > f.date_to):
            return False
        return text_matches(record, self.query)

    def run(self, collection_ref) -> List[Dict]:
        """Execute against Firestore; newest first."""
        records = []
        for doc in self.apply(collection_ref).stream():
            record = snapshot_to_dict(doc)
            record["created_at"] = to_datetime(record.get("created_at"))
            if self.matches(record):
                records.append(record)
        return sort_newest_first(records)


def sort_newest_first(records: List[Dict]) -> List[Dict]:
    return sorted(records, key=lambda r: r.get("created_at") or EPOCH, reverse=True)
