from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from meno.db.models import Base


# PUBLIC_INTERFACE
def make_engine(database_url: str) -> Engine:
    """Create the engine for the given URL. SQLite connections are shared across the worker threads."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=False, future=True, connect_args=connect_args)


# PUBLIC_INTERFACE
def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# PUBLIC_INTERFACE
def init_db(engine: Engine) -> None:
    """Create the users and notes tables if they do not exist yet."""
    Base.metadata.create_all(bind=engine)


# PUBLIC_INTERFACE
def get_db(request: Request) -> Iterator[Session]:
    """
    Yields a SQLAlchemy session bound to the application's engine.
    Closes the session after use.
    Example usage (FastAPI):
        def endpoint(db: Session = Depends(get_db)):
            ...
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
