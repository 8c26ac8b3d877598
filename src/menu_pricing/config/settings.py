"""
Centralized settings and path configuration for menu pricing.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

ENV_PREFIX = 'MENU_PRICING_'


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    override = os.environ.get(f'{ENV_PREFIX}ROOT')
    if override:
        return Path(override).resolve()

    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists() or (parent / 'catalog.json').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def _env_path(name: str, default: Path) -> Path:
    value = os.environ.get(f'{ENV_PREFIX}{name}')
    return Path(value) if value else default


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Input files
    catalog_json: Path
    price_sheet_csv: Path

    # Output files
    compiled_catalog: Path
    build_report: Path

    # Money defaults
    default_currency: str = 'TRY'

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        from ..engine.models import SUPPORTED_CURRENCIES

        root = project_root or get_project_root()
        data_dir = root / 'data'

        default_currency = os.environ.get(f'{ENV_PREFIX}DEFAULT_CURRENCY', 'TRY').strip().upper()
        if default_currency not in SUPPORTED_CURRENCIES:
            raise ValueError(
                f"{ENV_PREFIX}DEFAULT_CURRENCY must be one of {SUPPORTED_CURRENCIES}, got '{default_currency}'"
            )

        return cls(
            project_root=root,
            catalog_json=_env_path('CATALOG', data_dir / 'catalog.json'),
            price_sheet_csv=_env_path('PRICE_SHEET', data_dir / 'price_sheet.csv'),
            compiled_catalog=_env_path('COMPILED_CATALOG', data_dir / 'outputs' / 'compiled_catalog.json'),
            build_report=data_dir / 'outputs' / 'build_report.json',
            default_currency=default_currency,
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings():
    """Drop the cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None
