"""
Configuration for Nodeflow Core
"""
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Configuration class for Nodeflow Core"""

    # API server configuration
    API_HOST: str = os.getenv("NODEFLOW_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("NODEFLOW_PORT", "7790"))

    # Debug mode (set NODEFLOW_DEBUG=true to enable)
    DEBUG: bool = os.getenv("NODEFLOW_DEBUG", "").lower() in ("true", "1", "yes")

    # Image generation service used by "generate" nodes
    GENERATION_URL: str = os.getenv("NODEFLOW_GENERATION_URL", "http://localhost:7791")
    GENERATION_TIMEOUT: float = float(os.getenv("NODEFLOW_GENERATION_TIMEOUT", "120"))
    GENERATION_API_KEY: Optional[str] = os.getenv("NODEFLOW_GENERATION_API_KEY")

    # Defaults for new "model" nodes
    DEFAULT_PROVIDER: str = os.getenv("NODEFLOW_DEFAULT_PROVIDER", "auto")
    DEFAULT_MODEL: str = os.getenv("NODEFLOW_DEFAULT_MODEL", "black-forest-labs/FLUX.1-schnell")

    @classmethod
    def validate(cls) -> bool:
        """Validate configuration"""
        if not (0 < cls.API_PORT < 65536):
            print(f"[CONFIG] Error: NODEFLOW_PORT must be a valid port, got {cls.API_PORT}")
            return False
        if cls.GENERATION_TIMEOUT <= 0:
            print("[CONFIG] Error: NODEFLOW_GENERATION_TIMEOUT must be positive")
            return False
        if not cls.GENERATION_URL.startswith(("http://", "https://")):
            print(f"[CONFIG] Error: NODEFLOW_GENERATION_URL must be an http(s) url, got {cls.GENERATION_URL}")
            return False
        return True
