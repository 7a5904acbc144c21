"""
Cleanup request endpoints - submission, listing/search, admin workflow and statistics.

Static paths (/stats, /recent) are declared before /{request_id}.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.models.base import DataResponse
from app.models.cleanup_request import (
    AssignRequest,
    CleanupRequestCreate,
    CleanupRequestPage,
    CleanupRequestResponse,
    CleanupRequestSummary,
    CleanupRequestUpdate,
    CleanupStats,
    StatusUpdateRequest,
)
from app.routes.deps import admin_user, optional_user
from app.services.cleanup_request_service import get_cleanup_request_service
from app.services.search_query import SearchFilters
from app.services.user_service import get_user_service

router = APIRouter(prefix="/api/cleanup-requests", tags=["Cleanup Requests"])


@router.get("/stats", response_model=DataResponse[CleanupStats])
async def get_stats():
    """
    Summary counts: total, per status, per severity, last 7 days and today.
    """
    return DataResponse(data=get_cleanup_request_service().get_stats())


@router.get("/recent", response_model=DataResponse[List[CleanupRequestSummary]])
async def get_recent(limit: int = Query(10, ge=1, le=100)):
    return DataResponse(data=get_cleanup_request_service().recent(limit))


@router.post("", status_code=status.HTTP_201_CREATED, response_model=DataResponse[CleanupRequestResponse])
async def submit_request(request: CleanupRequestCreate, claims: Optional[Dict] = Depends(optional_user)):
    """
    Submit a new cleanup request.

    Anonymous submissions are allowed; with a bearer token the request is
    linked to the submitting user.
    """
    user_id = claims["sub"] if claims else None
    result = get_cleanup_request_service().create_request(request, submitted_by=user_id)
    if user_id:
        get_user_service().increment_requests_count(user_id)
    return DataResponse(message="Cleanup request submitted successfully", data=result)


@router.get("", response_model=DataResponse[CleanupRequestPage])
async def list_requests(
    q: str = Query("", description="Free-text search over location, description, contact name and labels"),
    status_filter: Optional[str] = Query(None, alias="status"),
    severity: Optional[str] = None,
    problem_type: Optional[str] = Query(None, alias="problemType"),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
):
    filters = SearchFilters.from_params(
        status=status_filter,
        severity=severity,
        problem_type=problem_type,
        date_from=date_from,
        date_to=date_to,
    )
    return DataResponse(data=get_cleanup_request_service().list_requests(q, filters, page, limit))


@router.get("/{request_id}", response_model=DataResponse[CleanupRequestResponse])
async def get_request(request_id: str):
    return DataResponse(data=get_cleanup_request_service().get_request(request_id))


@router.patch("/{request_id}/status", response_model=DataResponse[CleanupRequestResponse])
async def update_status(request_id: str, request: StatusUpdateRequest, _: Dict = Depends(admin_user)):
    result = get_cleanup_request_service().update_status(request_id, request.status, request.admin_notes)
    return DataResponse(message="Status updated successfully", data=result)


@router.patch("/{request_id}/assign", response_model=DataResponse[CleanupRequestResponse])
async def assign_request(request_id: str, request: AssignRequest, _: Dict = Depends(admin_user)):
    result = get_cleanup_request_service().assign(request_id, request.assigned_to, request.estimated_completion)
    return DataResponse(message="Request assigned successfully", data=result)


@router.patch("/{request_id}", response_model=DataResponse[CleanupRequestResponse])
async def update_request(request_id: str, request: CleanupRequestUpdate, _: Dict = Depends(admin_user)):
    result = get_cleanup_request_service().update_details(request_id, request)
    return DataResponse(message="Cleanup request updated successfully", data=result)


@router.delete("/{request_id}", response_model=DataResponse[Dict[str, str]])
async def delete_request(request_id: str, _: Dict = Depends(admin_user)):
    deleted_id = get_cleanup_request_service().delete_request(request_id)
    return DataResponse(message="Cleanup request deleted successfully", data={"id": deleted_id})
