"""Client configuration with environment variable loading.

Pydantic-based configuration for the chat backend client.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()

_DATA_DIR = Path(__file__).parent.parent / "data"


class ClientConfig(BaseModel):
    """Configuration for the chat backend client.

    Attributes:
        api_base_url: Base URL of the chat backend API.
        request_timeout: HTTP timeout in seconds, streaming included.
        preferences_path: JSON file holding the persisted model preference.
    """

    api_base_url: str = Field(
        default_factory=lambda: os.getenv("CHAT_API_BASE_URL", "http://127.0.0.1:4000/api"),
        description="Chat backend base URL",
    )
    request_timeout: float = Field(
        default_factory=lambda: float(os.getenv("CHAT_REQUEST_TIMEOUT", "120.0")),
        ge=1.0,
        le=600.0,
        description="Request timeout in seconds",
    )
    preferences_path: Path = Field(
        default_factory=lambda: Path(
            os.getenv("CHAT_PREFERENCES_PATH", str(_DATA_DIR / "preferences.json"))
        ),
        description="Location of the persisted preferences file",
    )

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Validate that a base URL is provided and drop any trailing slash."""
        if not v or not v.strip():
            raise ValueError("API base URL required. Set CHAT_API_BASE_URL in .env")
        return v.strip().rstrip("/")


def get_client_config() -> ClientConfig:
    """Create client configuration from environment.

    Returns:
        Configured ClientConfig instance.

    Raises:
        ValueError: If the base URL is empty.
    """
    return ClientConfig()
