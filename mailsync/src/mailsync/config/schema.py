"""Pydantic models describing the MailSync runtime configuration."""
from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ValidationError(ValueError):
    """Raised when configuration data does not satisfy the schema."""


class ImapSettings(BaseModel):
    """Server endpoint and credentials for one IMAP account."""

    model_config = ConfigDict(extra="forbid")

    host: str = Field(min_length=1)
    port: int = Field(default=993, gt=0, lt=65536)
    ssl: bool = True
    username: str
    password: Optional[str] = None
    password_file: Optional[str] = None
    timeout: float = Field(default=10, gt=0)
    provider: str = "generic"

    @model_validator(mode="after")
    def _validate_password_source(self) -> "ImapSettings":
        if (self.password is None) == (self.password_file is None):
            raise ValidationError("exactly one of password or password_file must be set")
        return self

    def resolve_password(self) -> str:
        """Return the inline password or the first line of ``password_file``."""

        if self.password is not None:
            return self.password
        text = Path(self.password_file).expanduser().read_text(encoding="utf-8")
        return text.rstrip("\r\n")


class SyncSettings(BaseModel):
    """Process-wide synchronisation switches."""

    model_config = ConfigDict(extra="forbid")

    enable_write: bool = False


class RuntimeConfig(BaseModel):
    """Root configuration loaded from ``config.yaml``."""

    model_config = ConfigDict(extra="forbid")

    version: Literal[1] = 1
    imap: ImapSettings
    sync: SyncSettings = Field(default_factory=SyncSettings)
