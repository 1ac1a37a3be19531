import logging
from typing import List, Optional

from passlib.context import CryptContext
from pydantic import BaseModel, ConfigDict
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from meno.api.auth import TokenClaims, get_password_hash, verify_password
from meno.api.errors import (
    ConflictError,
    InternalError,
    NotFoundOrForbiddenError,
    UnauthenticatedError,
    ValidationError,
)
from meno.db.models import Note, User

logger = logging.getLogger(__name__)

NOT_FOUND_OR_NOT_AUTHORIZED = "Note not found or not authorized"

# SQLite INTEGER is a signed 64-bit value
MIN_NOTE_ID = -(2 ** 63)
MAX_NOTE_ID = 2 ** 63 - 1

# ==== Pydantic Schemas ====
# Request fields are optional at the schema level so that missing input is
# answered with the API's own 400 message instead of a framework error.

# PUBLIC_INTERFACE
class UserCreate(BaseModel):
    """Schema for user creation (signup) input."""
    fullname: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None

# PUBLIC_INTERFACE
class UserLogin(BaseModel):
    """Schema for login input."""
    email: Optional[str] = None
    password: Optional[str] = None

# PUBLIC_INTERFACE
class UserSummary(BaseModel):
    """User info returned on login (without password)."""
    id: int
    fullname: str
    email: str
    role: str

    model_config = ConfigDict(from_attributes=True)

# PUBLIC_INTERFACE
class LoginResponse(BaseModel):
    """Returned when authenticating successfully."""
    message: str = "Login successful"
    token: str
    user: UserSummary

# PUBLIC_INTERFACE
class CreatedResponse(BaseModel):
    """Id of a freshly created row."""
    id: int

# PUBLIC_INTERFACE
class MessageResponse(BaseModel):
    message: str

# PUBLIC_INTERFACE
class NoteWrite(BaseModel):
    """Input schema for creating or updating a note. Both fields may be null."""
    title: Optional[str] = None
    content: Optional[str] = None

# PUBLIC_INTERFACE
class NoteRead(BaseModel):
    """Returned data for a note."""
    id: int
    user_id: int
    title: Optional[str] = None
    content: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

# ==== Credential store ====

# PUBLIC_INTERFACE
def create_user(db: Session, pwd_context: CryptContext, user: UserCreate) -> int:
    """Create a new user and return its id. Raises ConflictError if the email is taken."""
    if not all([user.fullname, user.email, user.password, user.role]):
        raise ValidationError("All fields are required.")
    db_user = User(
        fullname=user.fullname,
        email=user.email,
        password=get_password_hash(pwd_context, user.password),
        role=user.role,
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email already exists.")
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalError(str(exc))
    logger.info("Created user %s with role %r", db_user.id, db_user.role)
    return db_user.id

# PUBLIC_INTERFACE
def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get a user by exact email address, or None."""
    try:
        return db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    except SQLAlchemyError as exc:
        raise InternalError(f"Database error: {exc}")

# PUBLIC_INTERFACE
def authenticate_user(db: Session, pwd_context: CryptContext, email: Optional[str], password: Optional[str]) -> User:
    """Authenticate user by email and password. Raises UnauthenticatedError on any mismatch."""
    user = get_user_by_email(db, email) if email else None
    if user is None or not password or not verify_password(pwd_context, password, user.password):
        logger.info("Rejected login attempt")
        raise UnauthenticatedError("Invalid credentials")
    return user

# PUBLIC_INTERFACE
def claims_for(user: User) -> TokenClaims:
    """Token claims describing ``user``."""
    return TokenClaims(id=user.id, email=user.email, role=user.role)

# ==== Note store ====
# Every statement is filtered by owner, so a note belonging to someone else is
# indistinguishable from a note that does not exist.

# PUBLIC_INTERFACE
def get_notes(db: Session, owner_id: int) -> List[Note]:
    """List notes owned by the user, in storage order."""
    try:
        return list(db.execute(select(Note).where(Note.user_id == owner_id)).scalars())
    except SQLAlchemyError as exc:
        raise InternalError(str(exc))

# PUBLIC_INTERFACE
def create_note(db: Session, owner_id: int, note: NoteWrite) -> int:
    """Create a note for the authenticated user and return its id."""
    db_note = Note(user_id=owner_id, title=note.title, content=note.content)
    db.add(db_note)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalError(str(exc))
    logger.info("User %s created note %s", owner_id, db_note.id)
    return db_note.id

# PUBLIC_INTERFACE
def parse_note_id(raw: str) -> int:
    """Note id from a URL segment. Anything that cannot name a stored row is reported as not found."""
    try:
        note_id = int(raw)
    except ValueError:
        raise NotFoundOrForbiddenError(NOT_FOUND_OR_NOT_AUTHORIZED)
    if not MIN_NOTE_ID <= note_id <= MAX_NOTE_ID:
        raise NotFoundOrForbiddenError(NOT_FOUND_OR_NOT_AUTHORIZED)
    return note_id

# PUBLIC_INTERFACE
def update_note(db: Session, owner_id: int, note_id: int, note: NoteWrite) -> None:
    """Overwrite title and content of a note owned by the user."""
    stmt = (
        update(Note)
        .where(Note.id == note_id, Note.user_id == owner_id)
        .values(title=note.title, content=note.content)
    )
    _execute_owned(db, stmt)
    logger.info("User %s updated note %s", owner_id, note_id)

# PUBLIC_INTERFACE
def delete_note(db: Session, owner_id: int, note_id: int) -> None:
    """Remove a note owned by the user."""
    stmt = delete(Note).where(Note.id == note_id, Note.user_id == owner_id)
    _execute_owned(db, stmt)
    logger.info("User %s deleted note %s", owner_id, note_id)

def _execute_owned(db: Session, stmt) -> None:
    try:
        result = db.execute(stmt)
        if result.rowcount == 0:
            db.rollback()
            raise NotFoundOrForbiddenError(NOT_FOUND_OR_NOT_AUTHORIZED)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalError(str(exc))
