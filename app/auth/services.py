"""
Authentication services: password hashing and bearer tokens.

Tokens are signed, timestamped user ids (itsdangerous); passwords are
stored as bcrypt hashes on the user document.
"""
import logging
from typing import Optional

import bcrypt
from flask import request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from match_service.store import DocumentStore, utc_now_iso
from app.errors import Unauthorized, ValidationError

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"


class AuthService:
    """Issues and verifies bearer tokens for API requests."""

    def __init__(
        self,
        store: DocumentStore,
        secret_key: str,
        token_max_age_seconds: int,
        bcrypt_rounds: Optional[int] = None,
    ):
        self.store = store
        self.token_max_age_seconds = token_max_age_seconds
        self.bcrypt_rounds = bcrypt_rounds
        self._serializer = URLSafeTimedSerializer(secret_key, salt="match-service-auth")

    def register(self, uid: str, password: str) -> None:
        """Create a user with a password. Fails if the user already has one."""
        uid = (uid or "").strip()
        if not uid or not password:
            raise ValidationError("uid and password are required")

        existing = self.store.get(USERS_COLLECTION, uid)
        if existing and existing.get("password_hash"):
            raise ValidationError("user-exists")

        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds) if self.bcrypt_rounds else bcrypt.gensalt()
        password_hash = bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")
        fields = {"password_hash": password_hash}
        if not existing:
            fields["created_at"] = utc_now_iso()
        self.store.set(USERS_COLLECTION, uid, fields, merge=True)
        logger.info(f"Registered user {uid}")

    def check_password(self, uid: str, password: str) -> bool:
        user = self.store.get(USERS_COLLECTION, uid)
        password_hash = user.get("password_hash") if user else None
        if not password_hash or not password:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False

    def issue_token(self, uid: str, password: str) -> str:
        """Exchange credentials for a bearer token."""
        if not self.check_password(uid, password):
            raise Unauthorized("invalid-credentials")
        return self._serializer.dumps(uid)

    def verify_token(self, token: str) -> str:
        """Return the user id carried by a token or raise Unauthorized."""
        if not token:
            raise Unauthorized()
        try:
            uid = self._serializer.loads(token, max_age=self.token_max_age_seconds)
        except SignatureExpired:
            raise Unauthorized("token-expired")
        except BadSignature:
            raise Unauthorized("invalid-token")
        if not isinstance(uid, str) or not uid:
            raise Unauthorized("invalid-token")
        return uid

    def get_bearer_token(self) -> Optional[str]:
        """Token from the Authorization header of the current request."""
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return None
        return token.strip()

    def require_user(self) -> str:
        """User id of the current request; raises Unauthorized."""
        return self.verify_token(self.get_bearer_token())

    def require_auth_json(self) -> tuple[Optional[str], Optional[dict]]:
        """Require authentication for JSON endpoints, return error if not authenticated."""
        try:
            return self.require_user(), None
        except Unauthorized as exc:
            return None, {"error": exc.message}
