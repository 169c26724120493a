"""
Palette service configuration.
Reads environment variables with defaults.
"""
import os


class Config:
    """Configuration for the palette service."""

    # Logging
    LOG_LEVEL: str = os.environ.get("PALETTE_LOG_LEVEL", "INFO")

    # Clustering
    TOLERANCE: float = float(os.environ.get("PALETTE_TOLERANCE", "0.01"))
    MAX_ITERATIONS: int = int(os.environ.get("PALETTE_MAX_ITERATIONS", "300"))

    # Image handling
    DEFAULT_QUALITY: str = os.environ.get("PALETTE_DEFAULT_QUALITY", "standard")
    MAX_FILE_MB: int = int(os.environ.get("PALETTE_MAX_FILE_MB", "10"))
    # Decoded images above MAX_PIXELS are rejected; longer edges are downscaled to MAX_EDGE
    MAX_PIXELS: int = int(os.environ.get("PALETTE_MAX_PIXELS", "40000000"))
    MAX_EDGE: int = int(os.environ.get("PALETTE_MAX_EDGE", "1024"))

    # CORS, comma separated; "*" allows everything
    ALLOWED_ORIGINS: str = os.environ.get("PALETTE_ALLOWED_ORIGINS", "*")

    @classmethod
    def allowed_origins(cls) -> list:
        return [o.strip() for o in cls.ALLOWED_ORIGINS.split(",") if o.strip()]

    @classmethod
    def max_file_bytes(cls) -> int:
        return cls.MAX_FILE_MB * 1024 * 1024


# Global config instance
config = Config()
