"""Session tokens, registration and login."""

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import config, models
from .errors import InvalidCredentialsError, Unauthorized, UserExistsError, WeakPasswordError

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def issue_session(user_id: int) -> str:
    """Sign a token asserting ``user_id``.

    The token is signed, not encrypted. It carries no expiry unless
    ``SESSION_TTL_SECONDS`` is configured.
    """
    claims = {"id": user_id}
    if config.SESSION_TTL_SECONDS:
        claims["exp"] = datetime.now(timezone.utc) + timedelta(seconds=config.SESSION_TTL_SECONDS)
    return jwt.encode(claims, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def verify_session(db: Session, token: str | None) -> int:
    """Return the user id the token was issued for, or raise ``Unauthorized``."""
    if not token:
        raise Unauthorized()
    try:
        claims = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.PyJWTError:
        raise Unauthorized()

    user_id = claims.get("id")
    if not isinstance(user_id, int) or get_user(db, user_id) is None:
        raise Unauthorized()
    return user_id


def get_user(db: Session, user_id: int) -> models.User | None:
    return db.get(models.User, user_id)


def get_user_by_email(db: Session, email: str) -> models.User | None:
    return db.execute(select(models.User).where(models.User.email == email)).scalar_one_or_none()


def register_user(db: Session, name: str, email: str, password: str) -> str:
    if get_user_by_email(db, email) is not None:
        raise UserExistsError()
    if len(password) < config.MIN_PASSWORD_LENGTH:
        raise WeakPasswordError(
            f"Password must be at least {config.MIN_PASSWORD_LENGTH} characters"
        )

    user = models.User(name=name, email=email, password_hash=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email.
        db.rollback()
        raise UserExistsError()
    db.refresh(user)

    logger.info(f"User {user.id} registered")
    return issue_session(user.id)


def authenticate_user(db: Session, email: str, password: str) -> str:
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()
    return issue_session(user.id)
