"""Application configuration management.

Loads settings from environment with validation.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Pipeline settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TECHTREE_",
        case_sensitive=False
    )

    # Corpus
    workshop_path: Optional[Path] = None
    game_path: Optional[Path] = None
    package_paths: list[Path] = Field(default_factory=list)

    # Output
    output_dir: Path = Path("mods")

    # Parallelism
    max_workers: int = Field(default_factory=lambda: os.cpu_count() or 1, ge=1)

    # Development
    debug: bool = False
    log_level: str = "INFO"

    @property
    def localisation_output(self) -> Path:
        return self.output_dir / "localisation.json"

    @property
    def technologies_output(self) -> Path:
        return self.output_dir / "all_technologies.json"

    @property
    def technologies_map_output(self) -> Path:
        return self.output_dir / "technologies_map.json"

    @property
    def tech_tree_output(self) -> Path:
        return self.output_dir / "tech_tree.txt"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
