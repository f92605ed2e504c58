"""Factories shared by CLI commands.

Commands obtain their collaborators through these functions so tests can
patch them at the command module.
"""

from orbital_cli.auth.device.client import DeviceAuthorizationClient
from orbital_cli.auth.storage import JsonFileTokenStorage, TokenStorage
from orbital_cli.config.auth import AuthSettings
from orbital_cli.config.settings import Settings, get_settings
from orbital_cli.services.ai.gemini import GeminiService
from orbital_cli.services.chat_service import ChatService


def get_token_storage(config: AuthSettings | None = None) -> TokenStorage:
    """Token storage at the configured location."""
    config = config or get_settings().auth
    return JsonFileTokenStorage(config.token_file)


def get_device_client(config: AuthSettings | None = None) -> DeviceAuthorizationClient:
    """Client for the authorization server's device endpoints."""
    return DeviceAuthorizationClient(config or get_settings().auth)


def get_ai_service(settings: Settings | None = None) -> GeminiService:
    """Gemini client; raises ConfigValidationError without an API key."""
    return GeminiService((settings or get_settings()).ai)


def get_chat_service() -> ChatService:
    return ChatService()
