import hashlib
import logging
import time
from supabase import Client
from app.modules.auth.schemas import LoginRequest, SignupRequest, TokenResponse, SignupResponse, SessionContext
from app.modules.auth.events import session_events, SessionEvent, SIGNED_IN, SIGNED_OUT
from app.config.settings import settings
from fastapi import HTTPException
from typing import Dict

logger = logging.getLogger(__name__)

# Short-lived cache of validated tokens so every guarded request does not hit Supabase Auth
_AUTH_USER_CACHE: Dict[str, tuple] = {}


def _token_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _evict_cached_session(event: SessionEvent) -> None:
    if event.type == SIGNED_OUT and event.access_token:
        _AUTH_USER_CACHE.pop(_token_key(event.access_token), None)


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()


session_events.subscribe(_evict_cached_session)


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def sign_up(self, signup_data: SignupRequest) -> SignupResponse:
        """Register a new user. The session is absent when email confirmation is pending."""
        if len(signup_data.password) < settings.min_password_length:
            raise HTTPException(
                status_code=400,
                detail=f"Password must be at least {settings.min_password_length} characters."
            )
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": signup_data.email,
                "password": signup_data.password,
                "options": {
                    "data": {"full_name": signup_data.full_name or ""}
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to sign up")

            user = auth_response.user
            session = auth_response.session
            if session:
                session_events.publish(SessionEvent(SIGNED_IN, user.id, session.access_token))
            logger.info(f"Signed up user {user.id} (confirmation pending: {session is None})")

            return SignupResponse(
                user_id=user.id,
                email=user.email or signup_data.email,
                access_token=session.access_token if session else None,
                confirmation_required=session is None,
                message="Check your email to confirm your account" if session is None else "Account created"
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            raise HTTPException(status_code=500, detail=error_message)

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate with email and password"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid email or password")

            session_events.publish(
                SessionEvent(SIGNED_IN, auth_response.user.id, auth_response.session.access_token)
            )
            return TokenResponse(
                access_token=auth_response.session.access_token,
                token_type="bearer",
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=error_message)

    def get_current_user(self, token: str) -> SessionContext:
        """Resolve the session behind a bearer token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = _token_key(token)
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                session, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return session
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            session = SessionContext(
                user_id=user.id,
                email=user.email,
                access_token=token,
                user_metadata=user.user_metadata or {}
            )
            if len(_AUTH_USER_CACHE) < settings.auth_cache_max_size:
                _AUTH_USER_CACHE[cache_key] = (session, now + settings.auth_cache_ttl_sec)
            return session
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def logout(self, session: SessionContext) -> None:
        """Sign out and notify session listeners"""
        try:
            # Supabase tokens are stateless JWTs; the token stays valid until it expires
            self.supabase.auth.sign_out()
        except Exception as e:
            logger.warning(f"Supabase sign_out failed for user {session.user_id}: {e}")
        session_events.publish(SessionEvent(SIGNED_OUT, session.user_id, session.access_token))
