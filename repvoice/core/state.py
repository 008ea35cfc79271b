"""Runtime state shared by CLI commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from rich.console import Console


@dataclass
class CLIState:
    """Global options, loaded configuration and the output console."""

    json_output: bool
    plain_output: bool
    verbose: bool
    quiet: bool
    config_path: Path
    config: Dict[str, Any]
    console: Console

    @property
    def machine_output(self) -> bool:
        """True when output is meant for scripts rather than a terminal."""
        return self.json_output or self.plain_output

    @property
    def user_id(self) -> str:
        return str(self.config.get("user", {}).get("id") or "local")
