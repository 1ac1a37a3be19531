import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from meno.api.auth import (
    TokenClaims, TokenService,
    get_current_claims, get_pwd_context, get_token_service, make_pwd_context,
)
from meno.api.core import (
    UserCreate, UserLogin, UserSummary, LoginResponse,
    CreatedResponse, MessageResponse, NoteWrite, NoteRead,
    create_user, authenticate_user, claims_for,
    create_note, get_notes, update_note, delete_note, parse_note_id,
)
from meno.api.errors import register_error_handlers
from meno.config import Settings
from meno.db.db import get_db, init_db, make_engine, make_session_factory
from meno.logging_config import setup_logging

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "auth", "description": "Signup and login"},
    {"name": "notes", "description": "Create, update, view, and delete notes"}
]

router = APIRouter()

# --- Authentication Endpoints ---

# PUBLIC_INTERFACE
@router.post("/signup", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED,
             tags=["auth"], summary="Register a new user")
def signup(user: UserCreate, db: Session = Depends(get_db), pwd_context: CryptContext = Depends(get_pwd_context)):
    """Register a new user. All fields are required and the email must be unique."""
    return {"id": create_user(db, pwd_context, user)}

# PUBLIC_INTERFACE
@router.post("/login", response_model=LoginResponse, tags=["auth"], summary="Obtain a session token")
def login(
    credentials: UserLogin,
    db: Session = Depends(get_db),
    pwd_context: CryptContext = Depends(get_pwd_context),
    tokens: TokenService = Depends(get_token_service),
):
    """Authenticate by email and password and get a token valid for one hour."""
    user = authenticate_user(db, pwd_context, credentials.email, credentials.password)
    token = tokens.issue(claims_for(user))
    logger.info("User %s logged in", user.id)
    return {"token": token, "user": UserSummary.model_validate(user)}

# --- Notes Endpoints ---

# PUBLIC_INTERFACE
@router.get("/notes", response_model=List[NoteRead], tags=["notes"], summary="List my notes")
def list_notes(db: Session = Depends(get_db), claims: TokenClaims = Depends(get_current_claims)):
    """List the notes owned by the authenticated user."""
    return get_notes(db, claims.id)

# PUBLIC_INTERFACE
@router.post("/notes", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED,
             tags=["notes"], summary="Create a new note")
def create_user_note(
    note: Optional[NoteWrite] = None,
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
):
    """Create note belonging to authenticated user."""
    return {"id": create_note(db, claims.id, note or NoteWrite())}

# PUBLIC_INTERFACE
@router.put("/notes/{note_id}", response_model=MessageResponse, tags=["notes"], summary="Update a note")
def update_user_note(
    note_id: str,
    note: Optional[NoteWrite] = None,
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
):
    """Edit an existing note (must belong to user)."""
    update_note(db, claims.id, parse_note_id(note_id), note or NoteWrite())
    return {"message": "Note updated successfully"}

# PUBLIC_INTERFACE
@router.delete("/notes/{note_id}", response_model=MessageResponse, tags=["notes"], summary="Delete a note")
def delete_user_note(note_id: str, db: Session = Depends(get_db), claims: TokenClaims = Depends(get_current_claims)):
    """Delete one of your notes."""
    delete_note(db, claims.id, parse_note_id(note_id))
    return {"message": "Note deleted successfully"}


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the Meno API. Settings are read from the environment when not given."""
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Meno API",
        description="Note-taking backend: signup, login and per-user notes.",
        version="1.0",
        openapi_tags=openapi_tags,
    )

    engine = make_engine(settings.database_url)
    init_db(engine)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.pwd_context = make_pwd_context(settings.bcrypt_rounds)
    app.state.token_service = TokenService(
        settings.secret_key, settings.algorithm, settings.access_token_expire_minutes
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    @app.get("/", tags=["health"])
    def health_check():
        """Health check root."""
        return {"message": "Healthy"}

    app.include_router(router, prefix=settings.api_prefix)
    logger.info("Meno API ready (database %s)", engine.url.render_as_string(hide_password=True))
    return app


# PUBLIC_INTERFACE
def run() -> None:
    """Serve the API with uvicorn using host and port from the environment."""
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run("meno.api.main:create_app", factory=True, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
