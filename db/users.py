"""User lookup and first-login creation"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from identity.errors import UserResolutionError
from identity.id_token import IdTokenClaims
from .models import User

logger = logging.getLogger(__name__)


@dataclass
class AuthUser:
    """User as seen by the sign-in flow

    avatar_url comes from the latest identity token and is not persisted.
    """
    id: str
    email: str
    username: str
    display_name: str
    google_id: str
    avatar_url: Optional[str] = None


def _to_auth_user(row: User, claims: IdTokenClaims) -> AuthUser:
    return AuthUser(
        id=row.id,
        email=row.email,
        username=row.username,
        display_name=row.display_name or claims.name,
        google_id=claims.subject,
        avatar_url=claims.picture,
    )


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def generate_username() -> str:
    return f"user_{int(time.time() * 1000)}"


def find_or_create_user(db: Session, claims: IdTokenClaims) -> AuthUser:
    """Resolve the local user for verified claims, creating it on first login

    Stored display name and username win over the claims; the avatar is
    always taken from the claims. A unique-email conflict from a concurrent
    first login resolves to the row that won the race.

    Raises:
        UserResolutionError: If the user can neither be found nor created
    """
    try:
        existing = get_user_by_email(db, claims.email)
        if existing is not None:
            logger.info(f"Found existing user: {existing.email}")
            if not existing.google_id:
                existing.google_id = claims.subject
                db.commit()
            return _to_auth_user(existing, claims)

        logger.info(f"Creating new user: {claims.email}")
        row = User(
            username=generate_username(),
            email=claims.email,
            display_name=claims.name,
            google_id=claims.subject,
        )
        db.add(row)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info(f"Concurrent signup for {claims.email}, resolving existing user")
            existing = get_user_by_email(db, claims.email)
            if existing is None:
                raise UserResolutionError("User search or creation failed")
            return _to_auth_user(existing, claims)

        db.refresh(row)
        return _to_auth_user(row, claims)

    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"User lookup or creation failed: {e}")
        raise UserResolutionError("User search or creation failed") from e


def update_display_name(db: Session, user_id: str, display_name: str) -> Optional[User]:
    """Persist a new display name

    Returns:
        The updated row, or None if the user does not exist
    """
    row = get_user_by_id(db, user_id)
    if row is None:
        return None
    row.display_name = display_name
    db.commit()
    db.refresh(row)
    logger.info(f"Updated display name for {row.email}")
    return row
