"""Application environment configuration."""

from typing import Literal

from pydantic import BaseModel


class AppConfig(BaseModel, frozen=True):
    """Application identity and environment."""

    name: str
    version: str
    env: Literal["development", "staging", "production"]
    debug: bool

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env == "development"
