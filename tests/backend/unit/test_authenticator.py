"""
Unit tests for the Authenticator service (login, sessions, registration).
"""
import jwt
import pytest

from app.core.errors import AuthError, ConflictError, ValidationError
from app.core.security import (
    DUMMY_PASSWORD_HASH,
    decode_session_token,
    digest,
    pwd_context,
    verify_password,
)
from app.models.enums import USER_MANAGER_ROLES, ActivityAction, UserRole
from app.schemas.auth import RegisterIn


pytestmark = pytest.mark.asyncio


def _register_payload(username: str, **extra) -> RegisterIn:
    data = {
        "username": username,
        "password": "secret123",
        "fullName": f"{username.title()} Example",
        "email": f"{username}@example.com",
    }
    data.update(extra)
    return RegisterIn.model_validate(data)


async def test_login_success_sets_last_login_and_records(authenticator, make_user, repo, clock):
    user = await make_user(password="secret123")
    logged_in, token = await authenticator.login(user.username, "secret123")

    assert token
    assert logged_in.last_login == clock()
    actions = [a.action for a in await repo.list_activities_by_user(user.id)]
    assert actions == [ActivityAction.LOGIN.value]


async def test_login_failures_are_indistinguishable(authenticator, make_user, repo):
    user = await make_user(password="secret123")

    with pytest.raises(AuthError) as wrong_password:
        await authenticator.login(user.username, "nope")
    with pytest.raises(AuthError) as unknown_user:
        await authenticator.login("nobody", "secret123")

    assert wrong_password.value.code == unknown_user.value.code == "INVALID_CREDENTIALS"
    assert wrong_password.value.message == unknown_user.value.message
    assert await repo.list_activities() == []


async def test_resolve_returns_fresh_user(authenticator, make_user, repo):
    user = await make_user(password="secret123")
    _, token = await authenticator.login(user.username, "secret123")

    await repo.update_user(user.id, {"role": UserRole.AREA_SALES_MANAGER})
    resolved = await authenticator.resolve(token)
    assert resolved.id == user.id
    assert resolved.role == UserRole.AREA_SALES_MANAGER


async def test_resolve_rejects_garbage_and_missing_tokens(authenticator):
    with pytest.raises(AuthError):
        await authenticator.resolve(None)
    with pytest.raises(AuthError):
        await authenticator.resolve("not-a-token")


async def test_logout_revokes_session_and_is_idempotent(authenticator, make_user, repo):
    user = await make_user(password="secret123")
    _, token = await authenticator.login(user.username, "secret123")

    await authenticator.logout(token)
    with pytest.raises(AuthError):
        await authenticator.resolve(token)

    await authenticator.logout(token)
    await authenticator.logout(None)
    await authenticator.logout("garbage")

    actions = [a.action for a in await repo.list_activities_by_user(user.id)]
    assert actions.count(ActivityAction.LOGOUT.value) == 1


async def test_session_expires_with_clock(authenticator, make_user, clock):
    user = await make_user(password="secret123")
    _, token = await authenticator.login(user.username, "secret123")

    clock.advance(minutes=59)
    assert (await authenticator.resolve(token)).id == user.id
    clock.advance(minutes=2)
    with pytest.raises(AuthError):
        await authenticator.resolve(token)


async def test_resolve_fails_once_user_is_deleted(authenticator, make_user, repo):
    user = await make_user(password="secret123")
    _, token = await authenticator.login(user.username, "secret123")
    await repo.delete_user(user.id)
    with pytest.raises(AuthError):
        await authenticator.resolve(token)


async def test_each_login_gets_its_own_session(authenticator, make_user):
    user = await make_user(password="secret123")
    _, first = await authenticator.login(user.username, "secret123")
    _, second = await authenticator.login(user.username, "secret123")

    await authenticator.logout(first)
    assert (await authenticator.resolve(second)).id == user.id


async def test_legacy_digest_upgraded_on_login(authenticator, make_user, repo):
    user = await make_user()
    await repo.update_user(user.id, {"password": digest("legacy-pass")})

    await authenticator.login(user.username, "legacy-pass")
    stored = await repo.get_user(user.id)
    assert stored.password != digest("legacy-pass")
    assert stored.password.startswith("$argon2")
    assert verify_password("legacy-pass", stored.password)


async def test_first_registration_becomes_super_admin(authenticator, repo):
    user, token = await authenticator.register(_register_payload("founder", role="MEDICAL_REPRESENTATIVE"))
    assert user.role == UserRole.SUPER_ADMIN
    assert (await authenticator.resolve(token)).id == user.id

    actions = [a.action for a in await repo.list_activities_by_user(user.id)]
    assert actions == [ActivityAction.REGISTER.value]


async def test_later_registrations_default_to_medical_representative(authenticator):
    await authenticator.register(_register_payload("founder"))
    user, _ = await authenticator.register(_register_payload("rep"))
    assert user.role == UserRole.MEDICAL_REPRESENTATIVE

    executive, _ = await authenticator.register(_register_payload("dx", role="DISTRIBUTOR_EXECUTIVE"))
    assert executive.role == UserRole.DISTRIBUTOR_EXECUTIVE


@pytest.mark.parametrize("role", [r.value for r in USER_MANAGER_ROLES])
async def test_self_registering_a_managing_role_is_refused(authenticator, repo, role):
    await authenticator.register(_register_payload("founder"))
    with pytest.raises(ValidationError) as exc:
        await authenticator.register(_register_payload("climber", role=role))
    assert exc.value.code == "ROLE_NOT_ALLOWED"
    assert await repo.get_user_by_username("climber") is None


async def test_self_registering_super_admin_is_refused(authenticator, repo):
    await authenticator.register(_register_payload("founder"))
    with pytest.raises(ValidationError) as exc:
        await authenticator.register(_register_payload("sneaky", role="SUPER_ADMIN"))
    assert exc.value.code == "ROLE_NOT_ALLOWED"
    assert await repo.get_user_by_username("sneaky") is None


async def test_register_conflicts(authenticator, repo):
    await authenticator.register(_register_payload("founder"))

    with pytest.raises(ConflictError) as taken_name:
        await authenticator.register(_register_payload("founder", email="other@example.com"))
    assert taken_name.value.code == "USERNAME_TAKEN"

    with pytest.raises(ConflictError) as taken_email:
        await authenticator.register(_register_payload("newbie", email="founder@example.com"))
    assert taken_email.value.code == "EMAIL_TAKEN"

    assert await repo.count_users() == 1


async def test_register_stores_hash_not_plain_password(authenticator):
    user, _ = await authenticator.register(_register_payload("founder"))
    assert user.password != "secret123"
    assert verify_password("secret123", user.password)


async def test_change_password(authenticator, make_user, repo):
    user = await make_user(password="secret123")

    with pytest.raises(AuthError):
        await authenticator.change_password(user, "wrong", "newsecret")

    await authenticator.change_password(user, "secret123", "newsecret")
    with pytest.raises(AuthError):
        await authenticator.login(user.username, "secret123")
    await authenticator.login(user.username, "newsecret")

    actions = [a.action for a in await repo.list_activities_by_user(user.id)]
    assert ActivityAction.CHANGE_PASSWORD.value in actions


async def test_unknown_username_costs_a_hash_check_too(authenticator, make_user, monkeypatch):
    user = await make_user(password="secret123")
    checked = []
    original_verify = pwd_context.verify

    def recording_verify(secret, hashed, **kwargs):
        checked.append(hashed)
        return original_verify(secret, hashed, **kwargs)

    monkeypatch.setattr(pwd_context, "verify", recording_verify)

    with pytest.raises(AuthError):
        await authenticator.login("nobody", "secret123")
    with pytest.raises(AuthError):
        await authenticator.login(user.username, "wrong")

    assert checked == [DUMMY_PASSWORD_HASH, user.password]


async def test_token_expiry_follows_the_session_clock(authenticator, make_user, clock):
    user = await make_user(password="secret123")
    issued_at = clock()
    _, token = await authenticator.login(user.username, "secret123")

    claims = decode_session_token(token, now=clock())
    assert claims["iat"] == int(issued_at.timestamp())
    assert claims["exp"] == int((issued_at + authenticator.session_ttl).timestamp())

    clock.advance(hours=1, seconds=1)
    with pytest.raises(jwt.ExpiredSignatureError):
        decode_session_token(token, now=clock())
