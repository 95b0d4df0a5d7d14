from supabase import create_client, Client, ClientOptions
from app.config.settings import settings


class SupabaseClient:
    _client: Client = None
    _auth_client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_auth_client(cls) -> Client:
        """Client for sign-up/sign-in/sign-out only.

        A sign-in rewrites the Authorization header of the client it ran on, so these
        calls never touch the shared data client, which stays on the anon key.
        """
        if cls._auth_client is None:
            cls._auth_client = create_client(
                settings.supabase_url,
                settings.supabase_key,
                options=ClientOptions(persist_session=False, auto_refresh_token=False),
            )
        return cls._auth_client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Only the admin bootstrap script uses it."""
        if cls._service_client is None:
            if not settings.supabase_service_role_key:
                raise RuntimeError("SUPABASE_SERVICE_ROLE_KEY is not configured")
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._auth_client = None
        cls._service_client = None


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_supabase_auth() -> Client:
    return SupabaseClient.get_auth_client()
