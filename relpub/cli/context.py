from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relpub.core.config import Config, default_config_path, load_config
from relpub.core.result import Err
from relpub.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    config: Config
    console: ConsoleProtocol


def build_context() -> CLIContext:
    console = RichConsole()
    config = Config()

    config_path = default_config_path()
    if config_path.exists():
        config_result = load_config(config_path)
        if isinstance(config_result, Err):
            console.warning(f"{config_result.error.message} (using defaults)")
        else:
            config = config_result.value

    return CLIContext(root=Path.cwd(), config=config, console=console)
