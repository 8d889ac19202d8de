"""
Global configuration object for the CLI, stored in the typer context.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass
class CliConfig:
    config_file_path: Path
    verbose: bool
