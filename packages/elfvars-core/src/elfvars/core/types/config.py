from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from elfvars.bridge.framing import GDB_PROMPT


class GdbConfig(BaseModel):
    """Debugger process configuration."""

    path: Optional[str] = None
    args: List[str] = Field(default_factory=list)
    prompt: str = GDB_PROMPT
    read_size: int = 4096

    @field_validator("prompt")
    @classmethod
    def _prompt_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("prompt must not be empty")
        return value

    @field_validator("read_size")
    @classmethod
    def _read_size_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("read_size must be positive")
        return value


class ParserConfig(BaseModel):
    """Decoding options."""

    expand_arrays: bool = False


class ElfVarsConfig(BaseModel):
    """Top-level elfvars configuration."""

    gdb: GdbConfig = GdbConfig()
    parser: ParserConfig = ParserConfig()
    verbose: bool = False


def load_config(path: Optional[str] = None) -> ElfVarsConfig:
    """Load configuration from an elfvars.toml file, falling back to defaults.

    Uses ``tomllib`` on Python 3.11+ and ``tomli`` on older versions.
    """

    if sys.version_info >= (3, 11):
        import tomllib
    else:
        import tomli as tomllib  # type: ignore[no-redef]

    config_path = Path(path) if path else Path("elfvars.toml")

    if not config_path.exists():
        return ElfVarsConfig()

    with open(config_path, "rb") as f:
        raw = tomllib.load(f)

    return ElfVarsConfig(**raw)
