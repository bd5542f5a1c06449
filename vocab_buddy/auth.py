"""
Authenticated user context.

Sign-in itself happens in Firebase Authentication; the core only ever sees the
resulting ID token (or, with the memory store, a local user id) and turns it
into a UserContext.
"""

from dataclasses import dataclass
from typing import Optional

from firebase_admin import auth as firebase_auth

from .errors import AuthRequired
from .logger import logger

LOCAL_USER_ID = "default_user"


@dataclass(frozen=True)
class UserContext:
    user_id: str
    email: Optional[str] = None


def require_user(user: Optional[UserContext]) -> UserContext:
    """Return ``user`` or raise AuthRequired when nobody is signed in."""
    if user is None or not user.user_id:
        raise AuthRequired("Sign in to continue.")
    return user


def verify_id_token(id_token: Optional[str]) -> UserContext:
    """
    Exchange a Firebase ID token for a UserContext.

    Requires the Firebase app to be initialized (see database.connect_firestore).
    """
    if not id_token:
        raise AuthRequired("No ID token supplied.")
    try:
        claims = firebase_auth.verify_id_token(id_token)
    except (firebase_auth.InvalidIdTokenError, firebase_auth.CertificateFetchError, ValueError) as e:
        logger.warning(f"ID token rejected: {e}")
        raise AuthRequired("Your sign-in is no longer valid. Please sign in again.") from e

    user = UserContext(user_id=claims["uid"], email=claims.get("email"))
    logger.success(f"Signed in as {user.email or user.user_id}")
    return user


def local_user() -> UserContext:
    """The single user of a memory-backed local run."""
    return UserContext(user_id=LOCAL_USER_ID, email=None)
