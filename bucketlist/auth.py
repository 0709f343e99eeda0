"""Authentication routes and helpers.

Passwords are stored as bcrypt hashes. A successful login returns the
user together with a signed bearer token; every other endpoint resolves
the acting user from that token through ``get_current_user``.
"""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from fastapi_limiter.depends import RateLimiter
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from . import schemas, crud
from .database import get_db
from .models import User
from .core import get_settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/users/login")
router = APIRouter(prefix="/api/users", tags=["auth"])
settings = get_settings()

login_limiter = RateLimiter(
    times=settings.LOGIN_RATE_LIMIT_TIMES, seconds=settings.LOGIN_RATE_LIMIT_SECONDS
)
"""Per-client throttle on login attempts."""


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Compare a plain password with its hashed value."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate a password hash using the configured context."""
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a signed JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire, "scope": "access"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def get_current_user(
    token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> User:
    """Dependency that returns the authenticated user from the JWT token."""

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        token_data = schemas.TokenData(**payload)
    except JWTError:
        raise credentials_exception
    if token_data.sub is None or token_data.scope != "access":
        raise credentials_exception
    user = crud.get_user_by_id(db, token_data.sub)
    if user is None:
        raise credentials_exception
    return user


@router.post(
    "/register", response_model=schemas.UserOut, status_code=status.HTTP_201_CREATED
)
def register(user_in: schemas.UserCreate, db: Session = Depends(get_db)):
    """Register a new user.

    Only one administrator can ever be registered.
    """

    hashed_password = get_password_hash(user_in.password)
    return crud.create_user(db, user_in, hashed_password)


@router.post(
    "/login",
    response_model=schemas.LoginOut,
    dependencies=[Depends(login_limiter)],
)
def login(credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    """Authenticate a user and return the profile with an access token.

    Unknown emails and wrong passwords are reported identically.
    """

    user = crud.get_user_by_email(db, credentials.email)
    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.warning("Failed login for %s", credentials.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
        )
    access_token = create_access_token({"sub": user.id})
    profile = schemas.UserOut.model_validate(user)
    return schemas.LoginOut(**profile.model_dump(), access_token=access_token)
