import logging
import secrets
import smtplib

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth import jwt_handler, mailer
from backend.auth.dependencies import Identity, require_auth
from backend.auth.passwords import hash_password, verify_password
from backend.core import config
from backend.core.errors import (
    DependencyFailure,
    DuplicateEmail,
    EmailNotVerified,
    InvalidCredentials,
)
from backend.database import get_db
from backend.models.user import ROLES, User

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)

VERIFICATION_PENDING_MESSAGE = 'Signup successful! Please check your email to verify your account.'


def normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized:
        raise ValueError('Email is required.')
    if '@' not in normalized:
        raise ValueError('Email address is invalid.')
    return normalized


class SignupRequest(BaseModel):
    email: str
    password: str
    name: str
    role: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Password is required.')
        return value

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in ROLES:
            raise ValueError(f'Role must be one of: {", ".join(ROLES)}.')
        return normalized


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        # No format check here: a malformed address is just an unknown account.
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError('Email is required.')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Password is required.')
        return value


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    role: str

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    token: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


def issue_token(user: User) -> AuthResponse:
    token = jwt_handler.create_access_token(user_id=user.id, email=user.email, role=user.role)
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.post('/signup', response_model=AuthResponse | MessageResponse)
def signup(data: SignupRequest, db: Session = Depends(get_db)):
    verification_enabled = config.EMAIL_VERIFICATION_ENABLED

    try:
        if db.query(User).filter(User.email == data.email).first() is not None:
            raise DuplicateEmail()

        user = User(
            email=data.email,
            hashed_password=hash_password(data.password),
            name=data.name,
            role=data.role,
            verified=not verification_enabled,
            verification_token=secrets.token_hex(32) if verification_enabled else None,
        )
        db.add(user)

        if not verification_enabled:
            db.commit()
            db.refresh(user)
            return issue_token(user)

        db.flush()
        try:
            mailer.send_verification_email(user.email, user.verification_token)
        except (smtplib.SMTPException, OSError) as exc:
            db.rollback()
            logger.exception('Failed to send verification email to %s', data.email)
            raise DependencyFailure('Failed to send verification email') from exc

        db.commit()
        return MessageResponse(message=VERIFICATION_PENDING_MESSAGE)
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateEmail() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Signup failed for %s', data.email)
        raise DependencyFailure() from exc


@router.get('/verify-email', response_class=PlainTextResponse)
def verify_email(token: str | None = Query(default=None), db: Session = Depends(get_db)):
    if not token:
        return PlainTextResponse('Invalid verification link.', status_code=400)

    try:
        user = db.query(User).filter(User.verification_token == token).first()
        if user is None:
            return PlainTextResponse('Invalid or expired verification token.', status_code=400)

        user.verified = True
        user.verification_token = None
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Email verification failed')
        raise DependencyFailure() from exc

    return PlainTextResponse('Email verified! You can now log in.')


@router.post('/login', response_model=AuthResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = db.query(User).filter(User.email == data.email).first()
    except SQLAlchemyError as exc:
        logger.exception('Login lookup failed')
        raise DependencyFailure() from exc

    if user is None or not verify_password(data.password, user.hashed_password):
        raise InvalidCredentials()
    if config.EMAIL_VERIFICATION_ENABLED and not user.verified:
        raise EmailNotVerified()

    return issue_token(user)


@router.get('/me')
def me(identity: Identity = Depends(require_auth)):
    return {'id': identity.id, 'email': identity.email, 'role': identity.role}
