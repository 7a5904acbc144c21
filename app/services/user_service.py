"""
User Service - Manage user accounts in Firestore.

Every method that returns a user returns the sanitized UserResponse
projection; password hashes and reset tokens never leave this module.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple, Union
import logging

from firebase_admin import firestore
from pydantic import ValidationError

from app.config.firebase import get_db
from app.core.errors import AuthenticationFailed, Conflict, NotFound, PermissionDenied, ValidationFailed
from app.core.settings import settings
from app.models.base import field_errors
from app.models.user import (
    AuthResult,
    PasswordResetIssued,
    UserProfileUpdate,
    UserRegister,
    UserResponse,
    UserRole,
    UserStats,
    UserStatus,
)
from app.services.stats_service import get_stats_service
from app.utils.firestore_helpers import snapshot_to_dict, storage_guard, to_datetime, utcnow, where_filter
from app.utils.security import (
    create_access_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)

logger = logging.getLogger(__name__)

COLLECTION = "users"
MIN_NEW_PASSWORD_LENGTH = 8


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def to_user_response(record: Dict) -> UserResponse:
    """Project a stored user onto the public fields only."""
    return UserResponse(
        id=record["id"],
        name=record.get("name", ""),
        email=record.get("email", ""),
        phone=record.get("phone") or "",
        location=record.get("location") or "Not specified",
        status=record.get("status", UserStatus.ACTIVE.value),
        role=record.get("role", UserRole.USER.value),
        email_verified=bool(record.get("email_verified", False)),
        device_info=record.get("device_info") or "",
        requests_count=int(record.get("requests_count", 0)),
        registered_at=to_datetime(record.get("registered_at")),
        last_login=to_datetime(record.get("last_login")),
    )


class UserService:
    """
    Service for user management in Firestore.
    """

    def __init__(self):
        self.db = get_db()

    @property
    def collection(self):
        return self.db.collection(COLLECTION)

    def _find_by_email(self, email: str) -> Optional[Dict]:
        with storage_guard("look up user by email"):
            query = where_filter(self.collection, "email", "==", normalize_email(email)).limit(1)
            docs = list(query.stream())
        return snapshot_to_dict(docs[0]) if docs else None

    def _load(self, user_id: str) -> Tuple[object, Dict]:
        with storage_guard("read user"):
            doc_ref = self.collection.document(user_id)
            record = snapshot_to_dict(doc_ref.get())
        if record is None:
            raise NotFound(f"User {user_id} not found")
        return doc_ref, record

    def _update(self, doc_ref, changes: Dict, action: str) -> Dict:
        changes["updated_at"] = utcnow()
        with storage_guard(action):
            doc_ref.update(changes)
            return snapshot_to_dict(doc_ref.get())

    def _issue_token(self, record: Dict) -> str:
        return create_access_token(record["id"], record["email"], record.get("role", UserRole.USER.value))

    def register(self, payload: Union[UserRegister, Dict]) -> AuthResult:
        """
        Create an account. The password is hashed before anything is stored.

        Raises:
            Conflict: An account with this email (case-insensitive) exists
        """
        if not isinstance(payload, UserRegister):
            try:
                payload = UserRegister.model_validate(payload)
            except ValidationError as e:
                raise ValidationFailed(field_errors(e))

        email = normalize_email(payload.email)
        if self._find_by_email(email):
            raise Conflict("User already exists with this email")

        now = utcnow()
        role = UserRole.ADMIN.value if email in settings.admin_emails else UserRole.USER.value
        record = {
            "name": payload.full_name,
            "email": email,
            "password_hash": hash_password(payload.password),
            "phone": "",
            "location": "Not specified",
            "status": UserStatus.ACTIVE.value,
            "role": role,
            "email_verified": False,
            "device_info": payload.device_info or "Unknown Device",
            "requests_count": 0,
            "registered_at": now,
            "last_login": now,
            "reset_password_token_hash": None,
            "reset_password_expires": None,
            "created_at": now,
            "updated_at": now,
        }

        with storage_guard("create user"):
            doc_ref = self.collection.document()
            doc_ref.set(record)

        record["id"] = doc_ref.id
        logger.info(f"User registered: {doc_ref.id} (role={role})")
        return AuthResult(user=to_user_response(record), token=self._issue_token(record))

    def login(self, email: str, password: str) -> AuthResult:
        """
        Check credentials and stamp last_login.

        Unknown email and wrong password produce the same message.
        """
        record = self._find_by_email(email)
        if record is None or not verify_password(password, record.get("password_hash")):
            raise AuthenticationFailed("Invalid email or password")

        if record.get("status") == UserStatus.SUSPENDED.value:
            raise PermissionDenied("Account suspended. Please contact support.")

        doc_ref = self.collection.document(record["id"])
        record = self._update(doc_ref, {"last_login": utcnow()}, "record login")
        logger.info(f"User logged in: {record['id']}")
        return AuthResult(user=to_user_response(record), token=self._issue_token(record))

    def get_user(self, user_id: str) -> UserResponse:
        _, record = self._load(user_id)
        return to_user_response(record)

    def list_users(self) -> List[UserResponse]:
        """All users, most recently registered first."""
        with storage_guard("list users"):
            query = self.collection.order_by("registered_at", direction=firestore.Query.DESCENDING)
            records = [snapshot_to_dict(doc) for doc in query.stream()]
        return [to_user_response(record) for record in records]

    def update_profile(self, user_id: str, payload: Union[UserProfileUpdate, Dict]) -> UserResponse:
        if not isinstance(payload, UserProfileUpdate):
            try:
                payload = UserProfileUpdate.model_validate(payload)
            except ValidationError as e:
                raise ValidationFailed(field_errors(e))

        changes = payload.model_dump(exclude_none=True)
        if not changes:
            raise ValidationFailed([{"field": "__root__", "message": "No fields to update"}])

        doc_ref, _ = self._load(user_id)
        record = self._update(doc_ref, changes, "update user profile")
        logger.info(f"User profile updated: {user_id} ({', '.join(sorted(changes))})")
        return to_user_response(record)

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        if len(new_password or "") < MIN_NEW_PASSWORD_LENGTH:
            raise ValidationFailed([{
                "field": "newPassword",
                "message": f"New password must be at least {MIN_NEW_PASSWORD_LENGTH} characters long",
            }])

        doc_ref, record = self._load(user_id)
        if not verify_password(current_password, record.get("password_hash")):
            raise ValidationFailed([{"field": "currentPassword", "message": "Current password is incorrect"}])

        self._update(doc_ref, {"password_hash": hash_password(new_password)}, "change password")
        logger.info(f"Password changed for user {user_id}")

    def update_status(self, user_id: str, status: str) -> UserResponse:
        allowed = [s.value for s in UserStatus]
        if status not in allowed:
            raise ValidationFailed(
                [{"field": "status", "message": f"'{status}' is not a valid status. Allowed: {', '.join(allowed)}"}],
                message="Invalid status",
            )
        doc_ref, _ = self._load(user_id)
        record = self._update(doc_ref, {"status": status}, "update user status")
        logger.info(f"User {user_id} status set to {status}")
        return to_user_response(record)

    def delete_user(self, user_id: str) -> str:
        """Hard delete for admin use. Suspension is the usual way to retire an account."""
        doc_ref, _ = self._load(user_id)
        with storage_guard("delete user"):
            doc_ref.delete()
        logger.info(f"User deleted: {user_id}")
        return user_id

    def increment_requests_count(self, user_id: str) -> None:
        """
        Best-effort counter bump after a logged-in submission.

        Uses a server-side increment so concurrent submissions are all counted.
        """
        try:
            self.collection.document(user_id).update({"requests_count": firestore.Increment(1)})
        except Exception as e:
            logger.warning(f"Failed to bump requests_count for {user_id}: {e}")

    def request_password_reset(self, email: str, now: Optional[datetime] = None) -> Optional[PasswordResetIssued]:
        """
        Issue a single-use reset token.

        Returns None when no account matches so callers can answer the same
        way either way. Only the token hash is stored.
        """
        record = self._find_by_email(email)
        if record is None:
            logger.info("Password reset requested for unknown email")
            return None

        now = now or utcnow()
        token = generate_reset_token()
        expires_at = now + timedelta(minutes=settings.RESET_TOKEN_EXPIRY_MINUTES)
        doc_ref = self.collection.document(record["id"])
        self._update(doc_ref, {
            "reset_password_token_hash": hash_reset_token(token),
            "reset_password_expires": expires_at,
        }, "store reset token")

        logger.info(f"Password reset token issued for user {record['id']} (expires {expires_at.isoformat()})")
        return PasswordResetIssued(token=token, expires_at=expires_at)

    def reset_password(self, token: str, new_password: str, now: Optional[datetime] = None) -> None:
        """
        Set a new password from a reset token.

        The token and its expiry are cleared on success and when the token is
        found expired.
        """
        if len(new_password or "") < MIN_NEW_PASSWORD_LENGTH:
            raise ValidationFailed([{
                "field": "newPassword",
                "message": f"New password must be at least {MIN_NEW_PASSWORD_LENGTH} characters long",
            }])

        now = now or utcnow()
        with storage_guard("look up reset token"):
            query = where_filter(self.collection, "reset_password_token_hash", "==", hash_reset_token(token)).limit(1)
            docs = list(query.stream())
        if not docs:
            raise ValidationFailed([{"field": "token", "message": "Reset token is invalid or has expired"}])

        record = snapshot_to_dict(docs[0])
        doc_ref = self.collection.document(record["id"])
        cleared = {"reset_password_token_hash": None, "reset_password_expires": None}

        expires_at = to_datetime(record.get("reset_password_expires"))
        if expires_at is None or expires_at < now:
            self._update(doc_ref, cleared, "clear expired reset token")
            raise ValidationFailed([{"field": "token", "message": "Reset token is invalid or has expired"}])

        self._update(doc_ref, {**cleared, "password_hash": hash_password(new_password)}, "reset password")
        logger.info(f"Password reset completed for user {record['id']}")

    def get_user_stats(self) -> UserStats:
        return get_stats_service().get_user_stats()


# Global service instance (singleton pattern)
_user_service = None


def get_user_service() -> UserService:
    """
    Get or create UserService singleton instance.

    Returns:
        UserService: The global user service instance
    """
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
