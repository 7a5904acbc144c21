from datetime import datetime, timedelta, timezone

from jose import jwt

from app.core.settings import settings
from app.utils.security import (
    create_access_token,
    decode_access_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)


def test_password_hash_round_trip():
    hashed = hash_password("kwame-password")
    assert hashed != "kwame-password"
    assert verify_password("kwame-password", hashed)
    assert not verify_password("wrong", hashed)


def test_missing_or_malformed_hash_never_verifies():
    assert not verify_password("anything", None)
    assert not verify_password("anything", "not-a-bcrypt-hash")


def test_access_token_claims():
    claims = decode_access_token(create_access_token("u1", "kwame@example.com", "admin"))
    assert (claims["sub"], claims["email"], claims["role"]) == ("u1", "kwame@example.com", "admin")


def test_expired_or_foreign_tokens_are_rejected():
    expired = jwt.encode(
        {"sub": "u1", "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    assert decode_access_token(expired) is None
    assert decode_access_token(jwt.encode({"sub": "u1"}, "other-secret", algorithm="HS256")) is None


def test_reset_tokens_are_random_and_hashed():
    first, second = generate_reset_token(), generate_reset_token()
    assert first != second
    assert hash_reset_token(first) == hash_reset_token(first)
    assert hash_reset_token(first) != first
