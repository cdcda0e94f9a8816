"""
Configuration management.

Loads settings from environment variables (and a local .env file) with
sensible defaults for a single-site SQLite installation.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

SUPPORTED_DATABASES = ("sqlite", "postgresql", "mysql")


class EnrichmentPolicy(str, Enum):
    """What to do when a product or tax lookup fails for one order line."""
    DEGRADE = "degrade"  # keep going with defaults, log the failure
    STRICT = "strict"    # abort the whole operation


@dataclass
class Settings:
    """Application settings."""

    # Database
    database_type: str = field(default_factory=lambda: os.getenv("DATABASE_TYPE", "sqlite"))
    database_path: str = field(
        default_factory=lambda: os.getenv("DATABASE_PATH", "./data/shiv_erp.db")
    )
    db_host: str = field(default_factory=lambda: os.getenv("DB_HOST", "localhost"))
    db_port: str = field(default_factory=lambda: os.getenv("DB_PORT", ""))
    db_name: str = field(default_factory=lambda: os.getenv("DB_NAME", "shiv_erp"))
    db_user: str = field(default_factory=lambda: os.getenv("DB_USER", "erp"))
    db_password: str = field(default_factory=lambda: os.getenv("DB_PASSWORD", "change_me"))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))

    # Business rules
    enrichment_policy: str = field(
        default_factory=lambda: os.getenv("ENRICHMENT_POLICY", EnrichmentPolicy.DEGRADE.value)
    )
    default_due_days: int = field(
        default_factory=lambda: int(os.getenv("DEFAULT_DUE_DAYS", "30"))
    )
    strict_tax_validation: bool = field(
        default_factory=lambda: os.getenv("STRICT_TAX_VALIDATION", "true").lower() == "true"
    )

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        return cls()

    @property
    def policy(self) -> EnrichmentPolicy:
        return EnrichmentPolicy(self.enrichment_policy.lower())

    def database_url(self) -> str:
        if self.database_type == "sqlite":
            return f"sqlite:///{self.database_path}"
        if self.database_type == "postgresql":
            port = self.db_port or "5432"
            return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{port}/{self.db_name}"
        if self.database_type == "mysql":
            port = self.db_port or "3306"
            return f"mysql+pymysql://{self.db_user}:{self.db_password}@{self.db_host}:{port}/{self.db_name}"
        raise ValueError(f"Unsupported database type: {self.database_type}")

    def validate(self) -> list[str]:
        """Validate settings and return list of errors."""
        errors = []
        if self.database_type not in SUPPORTED_DATABASES:
            errors.append(f"DATABASE_TYPE must be one of {', '.join(SUPPORTED_DATABASES)}")
        if self.enrichment_policy.lower() not in {p.value for p in EnrichmentPolicy}:
            errors.append("ENRICHMENT_POLICY must be 'degrade' or 'strict'")
        if self.default_due_days <= 0:
            errors.append("DEFAULT_DUE_DAYS must be positive")
        return errors


settings = Settings.from_env()
