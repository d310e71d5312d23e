import hashlib
import secrets
from datetime import timedelta
from typing import Optional

from flask import request, current_app

from models import db
from models.session import StaffSession
from utils.clock import utcnow


def _hash_token(token: str) -> str:
    # SHA-256 is fine for hashing random session tokens
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(staff_id: int) -> str:
    """
    Creates a server-side session and returns the RAW token.
    Only the hash is stored in DB.
    """
    raw_token = secrets.token_urlsafe(32)
    lifetime = current_app.config.get("SESSION_LIFETIME_SECONDS", 28800)

    row = StaffSession(
        staff_id=staff_id,
        token_hash=_hash_token(raw_token),
        expires_at=utcnow() + timedelta(seconds=lifetime),
    )
    db.session.add(row)
    db.session.commit()
    return raw_token


def _token_from_request() -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):].strip() or None
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "emptyleg_session")
    return request.cookies.get(cookie_name)


def get_session_from_request() -> Optional[StaffSession]:
    raw_token = _token_from_request()
    if not raw_token:
        return None

    now = utcnow()
    sess = StaffSession.query.filter_by(token_hash=_hash_token(raw_token), revoked=False).first()
    if not sess:
        return None

    # Absolute expiry
    if sess.expires_at <= now:
        return None

    # Idle timeout
    idle_seconds = current_app.config.get("IDLE_TIMEOUT_SECONDS", 1200)
    last_seen = sess.last_seen_at or sess.created_at
    if (last_seen + timedelta(seconds=idle_seconds)) <= now:
        return None

    sess.last_seen_at = now
    db.session.commit()
    return sess
