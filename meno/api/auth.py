"""Password hashing, session tokens and the bearer-token access guard.

Tokens are stateless HS256 JWTs carrying ``id``, ``email`` and ``role``. They
are not checked against the users table when verified: a token stays valid
until it expires, whatever happens to the account in the meantime.
"""

import datetime
import logging
from typing import Optional

from fastapi import Depends, Request
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from meno.api.errors import InternalError, InvalidTokenError, UnauthenticatedError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


# PUBLIC_INTERFACE
class TokenClaims(BaseModel):
    """Identity attributes embedded in a session token."""
    id: int
    email: str
    role: str


# PUBLIC_INTERFACE
def make_pwd_context(rounds: int = 12) -> CryptContext:
    """Password hashing context (bcrypt with the given cost factor)."""
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


# PUBLIC_INTERFACE
def get_password_hash(pwd_context: CryptContext, password: str) -> str:
    """Hash the plain password."""
    try:
        return pwd_context.hash(password)
    except ValueError as exc:
        raise InternalError(f"Password hashing failed: {exc}")


# PUBLIC_INTERFACE
def verify_password(pwd_context: CryptContext, plain_password: str, hashed_password: str) -> bool:
    """Verify password against stored hash. Unreadable hashes never match."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.warning("Stored password hash could not be verified")
        return False


# PUBLIC_INTERFACE
class TokenService:
    """Issues and verifies signed, time-limited session tokens."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_delta = datetime.timedelta(minutes=expire_minutes)

    def issue(self, claims: TokenClaims, now: Optional[datetime.datetime] = None) -> str:
        """Sign ``claims`` into a token that expires ``expires_delta`` after ``now``."""
        issued_at = now or datetime.datetime.now(datetime.timezone.utc)
        to_encode = claims.model_dump()
        to_encode.update({"iat": issued_at, "exp": issued_at + self.expires_delta})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Return the embedded claims, or raise InvalidTokenError on a bad signature or expiry."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            raise InvalidTokenError("Invalid or expired token")
        try:
            return TokenClaims(id=payload["id"], email=payload["email"], role=payload["role"])
        except (KeyError, ValueError):
            raise InvalidTokenError("Invalid or expired token")


# PUBLIC_INTERFACE
def get_token_service(request: Request) -> TokenService:
    """Token service configured on the app."""
    return request.app.state.token_service


# PUBLIC_INTERFACE
def get_pwd_context(request: Request) -> CryptContext:
    """Password hashing context configured on the app."""
    return request.app.state.pwd_context


# PUBLIC_INTERFACE
def get_current_claims(request: Request, tokens: TokenService = Depends(get_token_service)) -> TokenClaims:
    """
    Access guard for protected routes.

    A missing header, or one not starting with ``Bearer ``, fails with 401.
    A token that does not verify fails with 403.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise UnauthenticatedError("Authorization header missing or malformed")
    token = auth_header[len(BEARER_PREFIX):].strip()
    claims = tokens.verify(token)
    request.state.user = claims
    return claims
