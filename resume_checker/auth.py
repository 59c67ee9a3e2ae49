"""
Auth providers.

The API only needs three things from an auth backend: resolve a bearer token
to a user, sign in, and sign up. SupabaseAuthProvider talks to Supabase Auth;
LocalAuthProvider signs its own tokens and accepts any credentials, for local
development and tests.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from .config import Settings
from .exceptions import AuthError
from .models import AuthSession, AuthUser

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
SUPABASE_AUDIENCE = "authenticated"
LOCAL_AUDIENCE = "resume-checker"
_LOCAL_NAMESPACE = uuid.UUID("6f1c2a52-8d4e-4b0a-9a57-3f0f4c7e2d11")


def validate_sign_up(password: str, confirm_password: str) -> None:
    """Password rules from the sign-up form."""
    if password != confirm_password:
        raise AuthError("Passwords do not match", status_code=400)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", status_code=400)


class AuthProvider(ABC):
    name: str = "auth"

    @abstractmethod
    def get_user(self, token: str) -> Optional[AuthUser]:
        """Resolve a bearer token, or None when it is not valid."""

    @abstractmethod
    def sign_in(self, email: str, password: str) -> AuthSession:
        ...

    @abstractmethod
    def sign_up(self, email: str, password: str, full_name: str = "") -> AuthSession | AuthUser:
        """Register a user; returns a session when the backend issues one immediately."""


class SupabaseAuthProvider(AuthProvider):
    """Supabase Auth. Verifies JWTs locally when the project secret is known."""

    name = "supabase"

    def __init__(self, client: Any, jwt_secret: str = ""):
        self.client = client
        self.jwt_secret = jwt_secret

    @staticmethod
    def _user_from_claims(payload: Dict[str, Any]) -> Optional[AuthUser]:
        user_id = payload.get("sub")
        if not user_id:
            return None
        metadata = payload.get("user_metadata") or {}
        return AuthUser(id=user_id, email=payload.get("email"), full_name=metadata.get("full_name"))

    @staticmethod
    def _user_from_supabase(user: Any) -> AuthUser:
        metadata = getattr(user, "user_metadata", None) or {}
        return AuthUser(id=str(user.id), email=user.email, full_name=metadata.get("full_name"))

    def get_user(self, token: str) -> Optional[AuthUser]:
        if self.jwt_secret:
            try:
                payload = jwt.decode(
                    token,
                    self.jwt_secret,
                    algorithms=["HS256"],
                    audience=SUPABASE_AUDIENCE,
                )
            except JWTError:
                return None
            return self._user_from_claims(payload)

        # No secret configured: ask Supabase to validate the token
        try:
            res = self.client.auth.get_user(token)
        except Exception as e:
            logger.warning(f"Supabase token lookup failed: {e}")
            return None
        if res is None or res.user is None:
            return None
        return self._user_from_supabase(res.user)

    def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            res = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.info(f"Supabase sign-in rejected for {email}: {e}")
            raise AuthError("Invalid email or password") from e
        if res.session is None or res.user is None:
            raise AuthError("Invalid email or password")
        return AuthSession(
            access_token=res.session.access_token,
            user=self._user_from_supabase(res.user),
        )

    def sign_up(self, email: str, password: str, full_name: str = "") -> AuthSession | AuthUser:
        try:
            res = self.client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"full_name": full_name}},
            })
        except Exception as e:
            logger.info(f"Supabase sign-up rejected for {email}: {e}")
            raise AuthError(f"Sign-up failed: {e}", status_code=400) from e
        if res.user is None:
            raise AuthError("Sign-up failed", status_code=400)
        user = self._user_from_supabase(res.user)
        # Projects with email confirmation return no session until confirmed
        if res.session is None:
            return user
        return AuthSession(access_token=res.session.access_token, user=user)


class LocalAuthProvider(AuthProvider):
    """
    Accepts any credentials and issues locally signed HS256 tokens.
    The user id is a stable uuid5 of the email, so the same email always
    maps to the same drafts, resumes and chat history.
    """

    name = "local"

    def __init__(self, secret: str, algorithm: str = "HS256", ttl: timedelta = timedelta(hours=24)):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = ttl

    @staticmethod
    def user_id_for(email: str) -> str:
        return str(uuid.uuid5(_LOCAL_NAMESPACE, email.strip().lower()))

    def _issue(self, email: str, full_name: str = "") -> AuthSession:
        user = AuthUser(id=self.user_id_for(email), email=email, full_name=full_name or None)
        claims = {
            "sub": user.id,
            "email": email,
            "name": full_name,
            "aud": LOCAL_AUDIENCE,
            "exp": datetime.now(timezone.utc) + self.ttl,
        }
        token = jwt.encode(claims, self.secret, algorithm=self.algorithm)
        return AuthSession(access_token=token, user=user)

    def get_user(self, token: str) -> Optional[AuthUser]:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm], audience=LOCAL_AUDIENCE)
        except JWTError:
            return None
        if not payload.get("sub"):
            return None
        return AuthUser(id=payload["sub"], email=payload.get("email"), full_name=payload.get("name") or None)

    def sign_in(self, email: str, password: str) -> AuthSession:
        return self._issue(email)

    def sign_up(self, email: str, password: str, full_name: str = "") -> AuthSession:
        return self._issue(email, full_name)


def create_auth_provider(settings: Settings, supabase_client: Any = None) -> AuthProvider:
    """Pick the auth backend. Falls back to local auth when Supabase is absent."""
    if settings.auth_provider == "supabase":
        if supabase_client is not None:
            logger.info("✅ Auth provider: supabase")
            return SupabaseAuthProvider(supabase_client, jwt_secret=settings.supabase_jwt_secret)
        logger.warning("⚠️ AUTH_PROVIDER=supabase but Supabase is not configured — using local auth")
    logger.info("Auth provider: local (tokens signed with JWT_SECRET)")
    return LocalAuthProvider(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl=timedelta(hours=settings.token_ttl_hours),
    )
