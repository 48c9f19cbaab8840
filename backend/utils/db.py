from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, DBAPIError

PG_UNIQUE_VIOLATION = "23505"
MYSQL_DUPLICATE_ENTRY = 1062


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when an IntegrityError was raised by a unique constraint or index."""
    orig = getattr(exc, "orig", None)
    if orig is None:
        return False
    # asyncpg (through the SQLAlchemy adapter) and psycopg expose the SQLSTATE
    for attr in ("sqlstate", "pgcode"):
        if getattr(orig, attr, None) == PG_UNIQUE_VIOLATION:
            return True
    cause = getattr(orig, "__cause__", None)
    if getattr(cause, "sqlstate", None) == PG_UNIQUE_VIOLATION:
        return True
    args = getattr(orig, "args", ())
    if args and args[0] == MYSQL_DUPLICATE_ENTRY:
        return True
    return "UNIQUE constraint failed" in str(orig)


async def safe_commit(session, client_error_message: str = "Invalid request", server_error_message: str = "Internal server error"):
    try:
        await session.commit()
    except (IntegrityError, DBAPIError) as e:
        await session.rollback()
        raise HTTPException(status_code=400, detail=client_error_message) from e
    except Exception as e:
        await session.rollback()
        raise HTTPException(status_code=500, detail=server_error_message) from e
