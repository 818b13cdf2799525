import pytest
from datetime import datetime, timedelta, timezone
from jose import jwt

from lingolife.repositories.user_repository import InMemoryUserRepository, SqlUserRepository
from lingolife.services.auth_service import (
    AuthService, hash_password, verify_password, verify_token
)
from lingolife.utils.exceptions import AuthError, ConflictError, ValidationError


@pytest.fixture(params=["memory", "sql"])
def auth_service(request, settings_factory):
    if request.param == "memory":
        users = InMemoryUserRepository()
    else:
        users = SqlUserRepository(request.getfixturevalue("sql_session"))
    return AuthService(users, settings_factory())


def test_password_hashing():
    hashed = hash_password("secret1")
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("secret2", hashed)
    assert not verify_password("secret1", "not-a-bcrypt-hash")


def test_register_and_login(auth_service):
    user, token = auth_service.register("alice", "alice@example.com", "secret1")
    assert user.id
    assert user.password_hash != "secret1"

    payload = verify_token(token, auth_service.config)
    assert payload["userId"] == user.id
    assert payload["username"] == "alice"
    assert payload["email"] == "alice@example.com"

    exp = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    assert timedelta(days=6, hours=23) < exp - datetime.now(timezone.utc) <= timedelta(days=7)

    logged_in, _ = auth_service.login("alice", "secret1")
    assert logged_in.id == user.id


@pytest.mark.parametrize("username,email,password,message", [
    ("", "a@example.com", "secret1", "Username, email, and password are required"),
    ("alice", None, "secret1", "Username, email, and password are required"),
    ("alice", "a@example.com", "", "Username, email, and password are required"),
    ("alice", "a@example.com", "12345", "Password must be at least 6 characters"),
    ("alice", "a@example.com", "x" * 80, "Password must be at most 72 bytes"),
    ("alice", "a@example.com", "密" * 25, "Password must be at most 72 bytes"),
])
def test_register_validation(auth_service, username, email, password, message):
    with pytest.raises(ValidationError) as exc_info:
        auth_service.register(username, email, password)
    assert exc_info.value.message == message


def test_register_duplicate(auth_service):
    auth_service.register("alice", "alice@example.com", "secret1")

    with pytest.raises(ConflictError):
        auth_service.register("alice", "other@example.com", "secret1")
    with pytest.raises(ConflictError):
        auth_service.register("bob", "alice@example.com", "secret1")


def test_login_failures_look_the_same(auth_service):
    auth_service.register("alice", "alice@example.com", "secret1")

    with pytest.raises(AuthError) as wrong_password:
        auth_service.login("alice", "wrong-password")
    with pytest.raises(AuthError) as unknown_user:
        auth_service.login("nobody", "secret1")

    assert wrong_password.value.message == unknown_user.value.message == "Invalid username or password"
    assert wrong_password.value.status_code == 401


def test_login_requires_fields(auth_service):
    with pytest.raises(ValidationError):
        auth_service.login("alice", None)


def test_verify_token_rejects_bad_tokens(settings_factory):
    config = settings_factory()
    expired = jwt.encode(
        {"userId": "u-1", "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        config.JWT_SECRET, algorithm="HS256"
    )
    forged = jwt.encode({"userId": "u-1"}, "another-secret", algorithm="HS256")

    for token in (expired, forged, "garbage"):
        with pytest.raises(AuthError) as exc_info:
            verify_token(token, config)
        assert exc_info.value.status_code == 403


def test_register_accepts_password_at_byte_limit(auth_service):
    user, _ = auth_service.register("alice", "alice@example.com", "x" * 72)
    logged_in, _ = auth_service.login("alice", "x" * 72)
    assert logged_in.id == user.id


def test_login_with_overlong_password_is_rejected(auth_service):
    auth_service.register("alice", "alice@example.com", "secret1")
    with pytest.raises(AuthError):
        auth_service.login("alice", "x" * 80)
