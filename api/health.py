"""Health check endpoint."""

from http.server import BaseHTTPRequestHandler
import json

from src.utils.config import Settings


def health_status() -> dict:
    """Liveness payload; reports whether the listing store and API key are configured."""
    return {
        "status": "ok",
        "service": "listing-manager",
        "store_configured": bool(Settings.SUPABASE_URL and Settings.SUPABASE_SERVICE_ROLE_KEY),
        "api_key_configured": bool(Settings.api_key()),
    }


class handler(BaseHTTPRequestHandler):
    """Health check handler for Vercel serverless function."""

    def do_GET(self):
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(health_status()).encode('utf-8'))

    def do_HEAD(self):
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
