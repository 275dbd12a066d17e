"""Error Hierarchy - tests for codes, HTTP status mapping and the REST envelope.

Tests cover:
    - every domain error maps to its documented HTTP status
    - to_response carries code, category, severity and resource context
    - ResourceNotFoundError records resource type and id
"""

import pytest

from memoria.core.errors import (
    AlreadyExistsError, AlreadyMemberError, CapacityExceededError,
    DatabaseError, ErrorCategory, InvalidGroupBoundsError, InvalidScheduleError,
    InvalidStateError, MemoriaError, ResourceNotFoundError, SelfReferenceError,
    UnauthenticatedError, UnauthorizedError,
)


@pytest.mark.parametrize("error, status, code", [
    (UnauthenticatedError(), 401, "UNAUTHENTICATED"),
    (UnauthorizedError("no"), 403, "UNAUTHORIZED"),
    (ResourceNotFoundError("Group", "g1"), 404, "RESOURCE_NOT_FOUND"),
    (AlreadyExistsError("dup"), 409, "ALREADY_EXISTS"),
    (AlreadyMemberError("g1"), 409, "ALREADY_MEMBER"),
    (SelfReferenceError("me"), 400, "SELF_REFERENCE"),
    (CapacityExceededError("full"), 409, "CAPACITY_EXCEEDED"),
    (InvalidStateError("late"), 409, "INVALID_STATE"),
    (InvalidGroupBoundsError(1, 7), 400, "INVALID_MEMBER_BOUNDS"),
    (InvalidScheduleError(), 400, "INVALID_SCHEDULE"),
    (DatabaseError("boom", "commit"), 503, "DATABASE_ERROR"),
])
def test_error_status_and_code(error, status, code):
    assert isinstance(error, MemoriaError)
    assert error.http_status == status
    assert error.code == code


def test_not_found_response_envelope():
    body = ResourceNotFoundError("Chat", "c-42").to_response()["error"]
    assert body["code"] == "RESOURCE_NOT_FOUND"
    assert body["category"] == ErrorCategory.RESOURCE_NOT_FOUND.value
    assert body["severity"] == "error"
    assert body["context"] == {"resource_type": "Chat", "resource_id": "c-42"}
    assert "c-42" in body["message"]


def test_already_member_carries_group_context():
    error = AlreadyMemberError("g-7")
    assert error.context.resource_type == "Group"
    assert error.context.resource_id == "g-7"


def test_database_error_is_critical():
    body = DatabaseError("lost connection", "execute").to_response()["error"]
    assert body["severity"] == "critical"
    assert body["category"] == "database"
