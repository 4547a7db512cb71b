"""
Configuration settings for wikistreams.
"""
from pydantic import ConfigDict
from pydantic_settings import BaseSettings

from . import __version__

DEFAULT_STREAM_URL = "https://stream.wikimedia.org/v2/stream/"


class StreamSettings(BaseSettings):
    """
    Stream client configuration loaded from environment variables.

    Every field can be overridden with a ``WIKISTREAMS_`` prefixed variable,
    e.g. ``WIKISTREAMS_STREAM_URL``.
    """
    model_config = ConfigDict(
        env_prefix="WIKISTREAMS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Endpoint
    stream_url: str = DEFAULT_STREAM_URL
    user_agent: str = f"wikistreams/{__version__} (+https://github.com/wikistreams/wikistreams)"

    # HTTP settings
    connect_timeout: float = 10.0  # seconds; reads never time out

    # Reconnection (transport level)
    max_reconnect_attempts: int = 0  # 0 = fail on first error, -1 = infinite
    reconnect_base_delay: float = 1.0  # seconds
    reconnect_max_delay: float = 60.0  # seconds


# Global settings instance
settings = StreamSettings()
