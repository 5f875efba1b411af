"""
Configuration settings for the redemption calculator

Loads environment variables (``C9_`` prefix) and provides library configuration.
"""
import os
from typing import Optional

from dotenv import load_dotenv

from .constants import (
    GATEWAY_URLS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CHUNK_DELAY,
)

# Load environment variables from .env file
load_dotenv()


class Settings:
    """Library settings"""

    # Gateway Configuration
    NETWORK: str = os.getenv("C9_NETWORK", "mainnet").lower()
    GATEWAY_URL: str = os.getenv("C9_GATEWAY_URL", "")
    APPLICATION_NAME: str = os.getenv("C9_APPLICATION_NAME", "C9 Liquidity Calculator")
    GATEWAY_TIMEOUT: float = float(os.getenv("C9_GATEWAY_TIMEOUT", 30))
    GATEWAY_MAX_RETRIES: int = int(os.getenv("C9_GATEWAY_MAX_RETRIES", 3))
    GATEWAY_RETRY_DELAY: float = float(os.getenv("C9_GATEWAY_RETRY_DELAY", 1.0))

    # Fetch Limits
    PAGE_SIZE: int = int(os.getenv("C9_PAGE_SIZE", DEFAULT_PAGE_SIZE))
    CHUNK_SIZE: int = int(os.getenv("C9_CHUNK_SIZE", DEFAULT_CHUNK_SIZE))
    CHUNK_DELAY: float = float(os.getenv("C9_CHUNK_DELAY", DEFAULT_CHUNK_DELAY))

    # Logging
    LOG_LEVEL: str = os.getenv("C9_LOG_LEVEL", "INFO").upper()

    def __init__(self, **overrides):
        for name, value in overrides.items():
            if not hasattr(type(self), name):
                raise AttributeError(f"Unknown setting: {name}")
            setattr(self, name, value)

    def gateway_url(self, network: Optional[str] = None) -> str:
        """Get Gateway base URL, explicit GATEWAY_URL wins over the network default"""
        if self.GATEWAY_URL and network is None:
            return self.GATEWAY_URL.rstrip("/")
        network = (network or self.NETWORK).lower()
        if network not in GATEWAY_URLS:
            raise ValueError(
                f"Unsupported network: {network}. "
                f"Supported: {', '.join(GATEWAY_URLS.keys())}"
            )
        return GATEWAY_URLS[network]


# Create global settings instance
settings = Settings()
