"""
Configuration management for Lucky Discount.

Loads settings from a YAML config file and provides typed access. Secrets
(Supabase keys, Resend API key, Redis URL) are read from the environment only.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()


def _project_root() -> Path:
    """Return project root (parent of lucky_discount package)."""
    return Path(__file__).resolve().parent.parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"


@dataclass
class LuckyConfig:
    """Configuration for the lucky discount feature."""

    # Hosted tables
    rules_table: str = "lucky_number_discounts"
    claims_table: str = "lucky_discount_claims"
    profiles_table: str = "profiles"

    # Claims
    claim_validity_hours: int = 24
    fallback_code_prefix: str = "LUCKY"

    # Active-rule cache
    rules_cache_ttl: int = 60           # seconds
    rules_cache_key: str = "lucky:active_rules"

    # Notification
    email_sender: str = "NOIR925 <onboarding@resend.dev>"
    store_name: str = "NOIR925"
    resend_api_url: str = "https://api.resend.com"

    # Clock used for lucky numbers, login windows and email dates
    display_timezone: str = "Asia/Kolkata"

    log_level: str = "INFO"

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "LuckyConfig":
        """Load configuration from YAML file."""
        path = config_path or DEFAULT_CONFIG_PATH
        data = {}
        if path.exists():
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}

        tables = data.get('tables', {})
        claims = data.get('claims', {})
        cache = data.get('cache', {})
        email = data.get('email', {})
        defaults = cls()

        return cls(
            rules_table=tables.get('rules', defaults.rules_table),
            claims_table=tables.get('claims', defaults.claims_table),
            profiles_table=tables.get('profiles', defaults.profiles_table),
            claim_validity_hours=int(claims.get('validity_hours', defaults.claim_validity_hours)),
            fallback_code_prefix=claims.get('fallback_code_prefix', defaults.fallback_code_prefix),
            rules_cache_ttl=int(os.getenv("LUCKY_RULES_CACHE_TTL", cache.get('ttl_seconds', defaults.rules_cache_ttl))),
            rules_cache_key=cache.get('key', defaults.rules_cache_key),
            email_sender=os.getenv("LUCKY_EMAIL_SENDER", email.get('sender', defaults.email_sender)),
            store_name=email.get('store_name', defaults.store_name),
            resend_api_url=email.get('resend_api_url', defaults.resend_api_url),
            display_timezone=data.get('timezone', defaults.display_timezone),
            log_level=os.getenv("LOG_LEVEL", data.get('log_level', defaults.log_level)),
        )


# Global config instance
_config: Optional[LuckyConfig] = None


def get_config() -> LuckyConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = LuckyConfig.from_yaml()
    return _config


def set_config(config: LuckyConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
