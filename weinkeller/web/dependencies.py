"""FastAPI dependencies shared by the API routers."""

from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from weinkeller.db.engine import Database


def get_database(request: Request) -> Database:
    """The Database owned by the running application."""
    return request.app.state.database


def get_db_session(request: Request) -> Generator[Session, None, None]:
    """Dependency yielding one session per request.

    The session is closed after the response; services commit their own
    writes.

    Yields:
        SQLAlchemy Session bound to the application's database.
    """
    with get_database(request).session() as session:
        yield session


# Type aliases for dependency injection
DatabaseDep = Annotated[Database, Depends(get_database)]
SessionDep = Annotated[Session, Depends(get_db_session)]
