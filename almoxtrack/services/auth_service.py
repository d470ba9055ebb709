"""Stockroom staff accounts and session tokens.

Whoever is logged in is recorded as the ``responsible`` of every movement
they finalize, so tokens carry the display name alongside the user id.
"""
import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from sqlalchemy.orm import Session

from almoxtrack.config import settings
from almoxtrack.database import atomic
from almoxtrack.exceptions import InvalidArgumentError
from almoxtrack.models.user import User, UserRole

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode(), hashed.encode())


def _normalize_username(username: str) -> str:
    return (username or "").strip().lower()


def create_access_token(user: User) -> str:
    expires = datetime.now(timezone.utc) + timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS)
    claims = {
        "sub": user.id,
        "name": user.display_name,
        "role": UserRole(user.role).value,
        "exp": expires,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=TOKEN_ALGORITHM)


def decode_token(token: str) -> dict | None:
    """Claims of a valid token, or None when it is malformed, forged or expired."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[TOKEN_ALGORITHM])
    except jwt.InvalidTokenError as e:
        logger.info("Rejected token: %s", e)
        return None


def authenticate(db: Session, username: str, password: str) -> User | None:
    user = db.query(User).filter(User.username == _normalize_username(username)).first()
    if user is None or not user.active:
        return None
    if not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", user.username)
        return None
    return user


def get_user_by_id(db: Session, user_id: str) -> User | None:
    return db.get(User, user_id)


def create_user(
    db: Session,
    username: str,
    password: str,
    display_name: str = "",
    role: UserRole | str = UserRole.STAFF,
) -> User:
    username = _normalize_username(username)
    if not username or not password:
        raise InvalidArgumentError("Username and password are required")
    try:
        role = UserRole(role)
    except ValueError:
        raise InvalidArgumentError(f"Unknown role: {role}") from None
    if db.query(User.id).filter(User.username == username).first():
        raise InvalidArgumentError(f"Username '{username}' already exists")

    user = User(
        username=username,
        display_name=display_name.strip() or username,
        password_hash=hash_password(password),
        role=role,
    )
    with atomic(db):
        db.add(user)
    db.refresh(user)
    logger.info("Created %s account %s", role.value, username)
    return user


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.username.asc()).all()


def ensure_default_admin(db: Session) -> None:
    if db.query(User.id).first() is not None:
        return
    create_user(
        db,
        username=settings.DEFAULT_ADMIN_USERNAME,
        password=settings.DEFAULT_ADMIN_PASSWORD,
        display_name="Administrator",
        role=UserRole.ADMIN,
    )
    logger.warning("No accounts found; created %s, change its password", settings.DEFAULT_ADMIN_USERNAME)
