"""Database error mapping - SQLAlchemy failures surface as DatabaseError (503)."""

import pytest
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)

from memoria.core.errors import DatabaseError
from memoria.infrastructure.database import DatabaseSessionManager, to_database_error


@pytest.mark.parametrize("exc, operation", [
    (IntegrityError("INSERT", {}, Exception("dup")), "commit"),
    (OperationalError("SELECT", {}, Exception("gone")), "execute"),
    (DBAPIError("SELECT", {}, Exception("driver")), "query"),
    (SQLAlchemyError("odd"), "unknown"),
])
def test_most_specific_mapping_wins(exc, operation):
    error = to_database_error(exc)
    assert isinstance(error, DatabaseError)
    assert error.operation == operation
    assert error.http_status == 503


async def test_session_rolls_back_and_maps_errors():
    manager = DatabaseSessionManager("sqlite+aiosqlite:///:memory:")
    try:
        with pytest.raises(DatabaseError):
            async with manager.session():
                raise OperationalError("SELECT", {}, Exception("gone"))
        assert await manager.health_check() is True
    finally:
        await manager.dispose()
