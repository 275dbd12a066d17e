"""Identity Gateway - bearer JWT resolution.

Invariants:
    - A token signed with the shared secret resolves to its Identity
    - Wrong secret, wrong audience, garbage or a missing sub resolve to None
"""

from jose import jwt

from memoria.core.repository_protocols import Identity
from memoria.infrastructure.identity import JWTIdentityGateway


def test_issue_then_resolve():
    gateway = JWTIdentityGateway("s3cret")
    identity = Identity(
        user_id="user_2abc", display_name="Alice", handle="alice",
        avatar_url="https://cdn.example/alice.png",
    )

    assert gateway.resolve(gateway.issue(identity)) == identity


def test_profile_claims_are_optional():
    token = jwt.encode({"sub": "user_12345678"}, "s3cret", algorithm="HS256")

    identity = JWTIdentityGateway("s3cret").resolve(token)

    assert identity.user_id == "user_12345678"
    assert identity.handle == "user-12345678"
    assert identity.display_name == "user-12345678"
    assert identity.avatar_url is None


def test_wrong_secret_is_rejected():
    token = JWTIdentityGateway("other").issue(Identity("u1", "U", "u1"))
    assert JWTIdentityGateway("s3cret").resolve(token) is None


def test_garbage_is_rejected():
    assert JWTIdentityGateway("s3cret").resolve("not.a.token") is None


def test_missing_sub_is_rejected():
    token = jwt.encode({"name": "Nobody"}, "s3cret", algorithm="HS256")
    assert JWTIdentityGateway("s3cret").resolve(token) is None


def test_audience_is_enforced_when_configured():
    issuer = JWTIdentityGateway("s3cret", audience="memoria")
    token = issuer.issue(Identity("u1", "U", "u1"))

    assert issuer.resolve(token).user_id == "u1"
    assert JWTIdentityGateway("s3cret", audience="elsewhere").resolve(token) is None
