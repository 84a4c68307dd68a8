"""
Server Configuration

Loads configuration from environment variables and provides defaults.
Supports loading from a .env file at the project root using python-dotenv.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

root_env = Path(__file__).resolve().parent.parent / ".env"
if root_env.exists():
    load_dotenv(root_env)


@dataclass
class ServerConfig:
    """Server configuration."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Response cache
    cache_ttl_seconds: float = 60 * 60
    cache_max_size: int = 10_000

    # Rate limiting (fixed window per user)
    rate_limit_window_seconds: float = 60
    rate_limit_max_requests: int = 100

    # Background sweeps
    cache_sweep_interval_seconds: float = 10 * 60
    rate_limit_sweep_interval_seconds: float = 60

    # Collaborator data (JSON files). Unset paths mean empty in-memory collaborators.
    catalog_json_path: Optional[Path] = None
    interactions_json_path: Optional[Path] = None
    signals_json_path: Optional[Path] = None

    # Seed for the exploration random source; None draws fresh entropy.
    random_seed: Optional[int] = None

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        base_dir = Path(__file__).parent.parent

        def _path_env(key: str) -> Optional[Path]:
            v = os.getenv(key)
            if not v:
                return None
            p = Path(v)
            return p if p.is_absolute() else (base_dir / p).resolve()

        seed = os.getenv("RANDOM_SEED")
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cache_ttl_seconds=float(os.getenv("CACHE_TTL_SECONDS", "3600")),
            cache_max_size=int(os.getenv("CACHE_MAX_SIZE", "10000")),
            rate_limit_window_seconds=float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60")),
            rate_limit_max_requests=int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100")),
            cache_sweep_interval_seconds=float(os.getenv("CACHE_SWEEP_INTERVAL_SECONDS", "600")),
            rate_limit_sweep_interval_seconds=float(
                os.getenv("RATE_LIMIT_SWEEP_INTERVAL_SECONDS", "60")
            ),
            catalog_json_path=_path_env("CATALOG_JSON_PATH"),
            interactions_json_path=_path_env("INTERACTIONS_JSON_PATH"),
            signals_json_path=_path_env("SIGNALS_JSON_PATH"),
            random_seed=int(seed) if seed else None,
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []

        if self.cache_ttl_seconds <= 0:
            errors.append(f"CACHE_TTL_SECONDS must be positive: {self.cache_ttl_seconds}")
        if self.cache_max_size < 1:
            errors.append(f"CACHE_MAX_SIZE must be at least 1: {self.cache_max_size}")
        if self.rate_limit_window_seconds <= 0:
            errors.append(f"RATE_LIMIT_WINDOW_SECONDS must be positive: {self.rate_limit_window_seconds}")
        if self.rate_limit_max_requests < 1:
            errors.append(f"RATE_LIMIT_MAX_REQUESTS must be at least 1: {self.rate_limit_max_requests}")
        for name in ("cache_sweep_interval_seconds", "rate_limit_sweep_interval_seconds"):
            if getattr(self, name) <= 0:
                errors.append(f"{name.upper()} must be positive")

        for name in ("catalog_json_path", "interactions_json_path", "signals_json_path"):
            path = getattr(self, name)
            if path is not None and not path.exists():
                errors.append(f"{name.upper()} not found: {path}")

        return len(errors) == 0, errors


# Global config instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def reload_config() -> ServerConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
