"""
Configuration management for Glowify.

Loads settings from the YAML config file and provides typed access.
DATABASE_URL in the environment (or .env) takes precedence over the file.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()


def _project_root() -> Path:
    """Return project root (parent of glowify package)."""
    return Path(__file__).resolve().parent.parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"
DEFAULT_DATABASE_URL = "sqlite:///./glowify.db"


@dataclass
class StorefrontConfig:
    """Configuration for the storefront backend."""

    # Store identity
    store_name: str = "Glowify"
    currency: str = "INR"
    currency_symbol: str = "₹"
    signature: str = "Glowify Team"

    # Persistence
    database_url: str = DEFAULT_DATABASE_URL
    sqlite_busy_timeout: float = 30.0   # seconds a writer waits for the lock

    # Order handoff targets
    whatsapp_number: str = ""
    order_emails: List[str] = field(default_factory=list)

    # Reject percentage coupons outside (0, 100] at creation time
    enforce_percentage_bounds: bool = True

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "StorefrontConfig":
        """Load configuration from YAML file."""
        path = config_path or DEFAULT_CONFIG_PATH
        data = {}
        if path.exists():
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}

        store = data.get('store', {})
        database = data.get('database', {})
        handoff = data.get('handoff', {})
        coupons = data.get('coupons', {})

        return cls(
            store_name=store.get('name', 'Glowify'),
            currency=store.get('currency', 'INR'),
            currency_symbol=store.get('currency_symbol', '₹'),
            signature=store.get('signature', 'Glowify Team'),
            database_url=os.getenv("DATABASE_URL") or database.get('url', DEFAULT_DATABASE_URL),
            sqlite_busy_timeout=float(database.get('sqlite_busy_timeout', 30)),
            whatsapp_number=str(handoff.get('whatsapp_number', '')),
            order_emails=list(handoff.get('order_emails') or []),
            enforce_percentage_bounds=bool(coupons.get('enforce_percentage_bounds', True)),
        )


# Global config instance
_config: Optional[StorefrontConfig] = None


def get_config() -> StorefrontConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = StorefrontConfig.from_yaml()
    return _config


def set_config(config: StorefrontConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
