"""
User endpoints - own profile management plus admin user administration.

/profile and /change-password are declared before /{user_id}.
"""

from typing import Dict, List

from fastapi import APIRouter, Depends

from app.models.base import BaseResponse, DataResponse
from app.models.user import PasswordChange, UserProfileUpdate, UserResponse, UserStats, UserStatusUpdate
from app.routes.deps import admin_user, current_user
from app.services.user_service import get_user_service

router = APIRouter(prefix="/api/users", tags=["Users"])
stats_router = APIRouter(prefix="/api/stats", tags=["Statistics"])


@router.patch("/profile", response_model=DataResponse[UserResponse])
async def update_own_profile(request: UserProfileUpdate, claims: Dict = Depends(current_user)):
    result = get_user_service().update_profile(claims["sub"], request)
    return DataResponse(message="Profile updated successfully", data=result)


@router.post("/change-password", response_model=BaseResponse)
async def change_password(request: PasswordChange, claims: Dict = Depends(current_user)):
    get_user_service().change_password(claims["sub"], request.current_password, request.new_password)
    return BaseResponse(message="Password changed successfully")


@router.get("", response_model=DataResponse[List[UserResponse]])
async def list_users(_: Dict = Depends(admin_user)):
    return DataResponse(data=get_user_service().list_users())


@router.get("/{user_id}", response_model=DataResponse[UserResponse])
async def get_user(user_id: str, _: Dict = Depends(admin_user)):
    return DataResponse(data=get_user_service().get_user(user_id))


@router.patch("/{user_id}/status", response_model=DataResponse[UserResponse])
async def update_user_status(user_id: str, request: UserStatusUpdate, _: Dict = Depends(admin_user)):
    result = get_user_service().update_status(user_id, request.status)
    return DataResponse(message="User status updated successfully", data=result)


@router.patch("/{user_id}", response_model=DataResponse[UserResponse])
async def update_user(user_id: str, request: UserProfileUpdate, _: Dict = Depends(admin_user)):
    result = get_user_service().update_profile(user_id, request)
    return DataResponse(message="User updated successfully", data=result)


@router.delete("/{user_id}", response_model=DataResponse[Dict[str, str]])
async def delete_user(user_id: str, _: Dict = Depends(admin_user)):
    deleted_id = get_user_service().delete_user(user_id)
    return DataResponse(message="User deleted successfully", data={"id": deleted_id})


@stats_router.get("/users", response_model=DataResponse[UserStats])
async def user_stats(_: Dict = Depends(admin_user)):
    return DataResponse(data=get_user_service().get_user_stats())
