"""
Runtime configuration.

Values come from the environment (a .env file is loaded by the entry
point) and are frozen for the duration of a run.

Environment Variables:
    SOLHYDRA_WORKSPACE_ROOT  Directory holding per-run workspaces (default: ~/.solhydra/workspaces)
    SOLHYDRA_COMPOSE_FILE    Orchestration file, one service per tool (default: packaged docker-compose.yml)
    SOLHYDRA_COMPOSE_CMD     Orchestration command (default: docker-compose)
    SOLHYDRA_TEMPLATE        Report template (default: packaged report.html.j2)
    SOLHYDRA_BUILD           Rebuild tool images before running (default: false)
"""

import os
import shlex
from dataclasses import dataclass
from pathlib import Path


_PACKAGE_DIR = Path(__file__).resolve().parent

DEFAULT_WORKSPACE_ROOT = Path.home() / ".solhydra" / "workspaces"
DEFAULT_COMPOSE_FILE = _PACKAGE_DIR / "docker-compose.yml"
DEFAULT_TEMPLATE = _PACKAGE_DIR / "templates" / "report.html.j2"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class HydraConfig:
    """Paths and commands used by one run."""

    workspace_root: Path = DEFAULT_WORKSPACE_ROOT
    compose_file: Path = DEFAULT_COMPOSE_FILE
    compose_command: tuple[str, ...] = ("docker-compose",)
    template_path: Path = DEFAULT_TEMPLATE
    build_images: bool = False

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "HydraConfig":
        """Build a config from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ

        compose_cmd = env.get("SOLHYDRA_COMPOSE_CMD", "").strip()

        return cls(
            workspace_root=Path(env.get("SOLHYDRA_WORKSPACE_ROOT") or DEFAULT_WORKSPACE_ROOT).expanduser(),
            compose_file=Path(env.get("SOLHYDRA_COMPOSE_FILE") or DEFAULT_COMPOSE_FILE).expanduser(),
            compose_command=tuple(shlex.split(compose_cmd)) if compose_cmd else ("docker-compose",),
            template_path=Path(env.get("SOLHYDRA_TEMPLATE") or DEFAULT_TEMPLATE).expanduser(),
            build_images=env.get("SOLHYDRA_BUILD", "").lower() in _TRUTHY,
        )
