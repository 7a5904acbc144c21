"""
Derived-field rules for cleanup requests.

problem_label is stored for fast reads and always follows problem_type.
priority starts out equal to severity and is independent afterwards.
"""

from typing import Dict, Optional

from app.models.cleanup_request import ProblemType

PROBLEM_LABELS: Dict[str, str] = {
    ProblemType.LITTER.value: "Litter & Trash",
    ProblemType.DUMPING.value: "Illegal Dumping",
    ProblemType.GRAFFITI.value: "Graffiti/Vandalism",
    ProblemType.OVERGROWN.value: "Overgrown Areas",
    ProblemType.SPILL.value: "Spills/Stains",
}

OTHER_SERVICE_LABEL = "Other Service"


def problem_label(problem_type: str, other_details: Optional[Dict] = None) -> str:
    """
    Display label for a problem type.

    For "other" the caller's custom problem type wins when it is non-empty.
    """
    if problem_type == ProblemType.OTHER.value:
        custom = ((other_details or {}).get("custom_problem_type") or "").strip()
        return custom or OTHER_SERVICE_LABEL
    return PROBLEM_LABELS.get(problem_type, problem_type)


def default_priority(severity: str, explicit: Optional[str] = None) -> str:
    """Construction-time rule: priority mirrors severity unless given."""
    return explicit or severity


def refresh_problem_label(record: Dict, problem_type_changed: bool) -> Dict:
    """
    Recompute problem_label when problem_type changed or the label is absent.

    Any other stored label is left untouched. Returns the record for chaining.
    """
    if problem_type_changed or not record.get("problem_label"):
        record["problem_label"] = problem_label(record["problem_type"], record.get("other_details"))
    return record
