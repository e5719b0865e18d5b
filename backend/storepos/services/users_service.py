# Overview: Service-layer operations for staff accounts.

"""
Staff account service.

Uses bcrypt for password hashing. Roles are stored for attribution only;
nothing in the API enforces them.
"""

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User
from ..schemas import CreateUserInput
from ..validation import ConflictError, ValidationError
from .concurrency import UnitOfWork

MIN_PASSWORD_LENGTH = 6


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt (cost factor BCRYPT_ROUNDS, default 12).

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def create_user(data: CreateUserInput) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises PasswordValidationError for short passwords and ConflictError
    when the username or email is already taken.
    """
    password_hash = hash_password(data.password)

    with UnitOfWork() as uow:
        session = uow.session
        if session.query(User).filter_by(username=data.username).first():
            raise ConflictError(f"Username '{data.username}' must be unique; it already exists")
        if session.query(User).filter_by(email=data.email).first():
            raise ConflictError(f"Email '{data.email}' must be unique; it already exists")

        user = User(
            username=data.username,
            email=data.email,
            password_hash=password_hash,
            full_name=data.full_name,
            role=data.role,
            is_active=True,
        )
        session.add(user)
        try:
            uow.commit()
        except IntegrityError as exc:
            raise ConflictError("Username and email must be unique") from exc
        return user


def list_users(include_inactive: bool = False) -> list[User]:
    q = db.session.query(User)
    if not include_inactive:
        q = q.filter(User.is_active.is_(True))
    return q.order_by(User.username.asc()).all()
