"""Email/password identity on top of Supabase Auth.

`AuthService` wraps `client.auth` and keeps the signed-in identity in a
per-browser mapping (Streamlit's `st.session_state`), so views receive it
explicitly instead of reaching for a global.

E-mail confirmation and password-reset links come back to the app with a
`?code=` query parameter (PKCE flow); `restore()` exchanges it for a session.
"""

import logging
from dataclasses import dataclass
from typing import Any, MutableMapping, Optional

logger = logging.getLogger(__name__)

IDENTITY_KEY = "auth_identity"


class AuthError(Exception):
    """An identity-provider call failed; the message is safe to show."""


@dataclass(frozen=True)
class Identity:
    uid: str
    email: Optional[str] = None


@dataclass(frozen=True)
class AuthState:
    identity: Optional[Identity]
    loading: bool = False


def _identity_from(user: Any) -> Optional[Identity]:
    if user is None:
        return None
    return Identity(uid=str(user.id), email=getattr(user, "email", None))


def _require(email: str, password: str) -> None:
    if not email or not password:
        raise AuthError("Please enter both email and password.")


class AuthService:
    def __init__(self, client: Any, session_state: MutableMapping[str, Any]):
        self._auth = client.auth
        self._state = session_state

    # ── session bookkeeping ──────────────────────────────────────────────
    def _remember(self, response: Any) -> Optional[Identity]:
        identity = _identity_from(getattr(response, "user", None))
        session = getattr(response, "session", None)
        if identity is None or session is None:
            return None
        self._state[IDENTITY_KEY] = identity
        return identity

    def _forget(self) -> None:
        self._state.pop(IDENTITY_KEY, None)

    def state(self, auth_code: Optional[str] = None) -> AuthState:
        """Current identity; `loading` while an auth code awaits `restore()`."""
        identity = self._state.get(IDENTITY_KEY)
        if identity is not None:
            return AuthState(identity=identity)
        return AuthState(identity=None, loading=bool(auth_code))

    def restore(self, auth_code: Optional[str]) -> AuthState:
        """Exchange the code from a confirmation or reset link for a session."""
        if not auth_code or self._state.get(IDENTITY_KEY) is not None:
            return self.state()
        try:
            response = self._auth.exchange_code_for_session({"auth_code": auth_code})
        except Exception as exc:
            logger.warning("Auth code could not be exchanged: %s", exc)
            return AuthState(identity=None)
        identity = self._remember(response)
        if identity is not None:
            logger.info("Session restored for %s", identity.email)
        return self.state()

    # ── provider operations ──────────────────────────────────────────────
    def sign_in(self, email: str, password: str) -> Identity:
        _require(email, password)
        try:
            response = self._auth.sign_in_with_password({"email": email, "password": password})
        except Exception as exc:
            raise AuthError(f"Login failed: {exc}") from exc
        identity = self._remember(response)
        if identity is None:
            raise AuthError("Login failed: no session returned.")
        logger.info("Signed in %s", identity.email)
        return identity

    def sign_up(self, email: str, password: str) -> Optional[Identity]:
        """Create an account. Returns None when e-mail confirmation is pending."""
        _require(email, password)
        try:
            response = self._auth.sign_up({"email": email, "password": password})
        except Exception as exc:
            raise AuthError(f"Sign up failed: {exc}") from exc
        identity = self._remember(response)
        logger.info("Signed up %s (session issued: %s)", email, identity is not None)
        return identity

    def sign_out(self) -> None:
        try:
            self._auth.sign_out()
        except Exception as exc:
            logger.warning("Provider sign-out failed, clearing local session anyway: %s", exc)
        finally:
            self._forget()

    def send_password_reset(self, email: str) -> None:
        if not email:
            raise AuthError("Please enter your email.")
        try:
            self._auth.reset_password_for_email(email)
        except Exception as exc:
            raise AuthError(f"Password reset failed: {exc}") from exc
        logger.info("Password reset requested for %s", email)
