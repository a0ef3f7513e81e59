import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.orm import Session

from .. import schemas
from ..models.db import crud
from ..security import verify_password, create_access_token, decode_access_token, get_password_hash
from ..models.db.database import get_db
from ..config.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()

# Bearer header is optional; the session cookie is the fallback.
oauth2_scheme = HTTPBearer(scheme_name="Bearer", auto_error=False)

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


def validate_new_password(password: Optional[str], field_label: str = "Password") -> None:
    settings = get_settings()
    if not password or len(password) < settings.password_min_length:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field_label} must be at least {settings.password_min_length} characters",
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field_label} must be at most {MAX_PASSWORD_BYTES} bytes",
        )


def _set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        secure=settings.is_production(),
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60,
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(user: schemas.UserCreate, response: Response, db: Session = Depends(get_db)):
    validate_new_password(user.password)
    db_user = crud.get_user_by_email(db, email=user.email)
    if db_user:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    hashed_password = get_password_hash(user.password)
    new_user = crud.create_user(db=db, user=user, hashed_password=hashed_password)
    token = create_access_token(data={"sub": str(new_user.id)})
    _set_session_cookie(response, token)
    logger.info("Registered user %s", new_user.id)
    return {"message": "Registration successful", "user": new_user, "token": token}


@router.post("/login", response_model=schemas.AuthResponse)
def login(credentials: schemas.UserLogin, response: Response, db: Session = Depends(get_db)):
    user = crud.get_user_by_email(db, email=credentials.email)
    if not user or not verify_password(credentials.password, user.hashed_password):
        raise _unauthorized("Invalid email or password")
    token = create_access_token(data={"sub": str(user.id)})
    _set_session_cookie(response, token)
    return {"message": "Login successful", "user": user, "token": token}


@router.post("/logout", response_model=schemas.MessageResponse)
def logout(response: Response):
    settings = get_settings()
    response.delete_cookie(
        key=settings.auth_cookie_name,
        httponly=True,
        secure=settings.is_production(),
        samesite="lax",
    )
    return {"message": "Logged out successfully"}


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(oauth2_scheme),
):
    # An explicit bearer header wins over the session cookie.
    if credentials is not None:
        token = credentials.credentials
    else:
        token = request.cookies.get(get_settings().auth_cookie_name)
    if not token:
        raise _unauthorized("Authentication required")

    try:
        payload = decode_access_token(token)
        user_id = int(payload.get("sub"))
    except ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except (JWTError, TypeError, ValueError):
        raise _unauthorized("Invalid token")

    user = crud.get_user_by_id(db, user_id=user_id)
    if user is None:
        raise _unauthorized("User not found")
    return user


def get_current_active_user(current_user: schemas.User = Depends(get_current_user)):
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return current_user


@router.get("/me", response_model=schemas.UserEnvelope)
def read_current_user(current_user: schemas.User = Depends(get_current_active_user)):
    return {"user": current_user}
