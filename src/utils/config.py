"""Application settings read from environment variables."""

import os


class Settings:
    """Centralized application settings."""

    SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
    SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")
    LISTINGS_TABLE = os.environ.get("LISTINGS_TABLE", "listings")

    # Shared secret expected in the X-API-Key header
    API_KEY = os.environ.get("API_KEY", "")

    DEFAULT_SORT_FIELD = os.environ.get("DEFAULT_SORT_FIELD", "listing_date")
    DEFAULT_RESULTS_LIMIT = int(os.environ.get("DEFAULT_RESULTS_LIMIT", "20"))

    @classmethod
    def api_key(cls) -> str:
        """Current API key (re-read so deployments can rotate it without a rebuild)."""
        return os.environ.get("API_KEY", cls.API_KEY).strip()
