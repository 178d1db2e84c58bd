"""Supabase client construction."""

from typing import Optional
from supabase import create_client, Client
from supabase.client import ClientOptions

from src.utils.config import Settings
from src.utils.errors import ConfigurationError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


def create_supabase_client(url: Optional[str] = None, key: Optional[str] = None) -> Client:
    """Create a Supabase client from explicit values or the environment.

    The caller owns the returned client; nothing is cached here.
    """
    url = url or Settings.SUPABASE_URL
    key = key or Settings.SUPABASE_SERVICE_ROLE_KEY

    if not url or not key:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

    # Serverless: no session persistence or background token refresh
    options = ClientOptions(
        auto_refresh_token=False,
        persist_session=False,
    )

    client = create_client(url, key, options)
    logger.info("Supabase client initialized", supabase_url=url)
    return client
