"""
Tool table for the analysis fleet.

Encapsulates the static, per-tool configuration (enabled tool names,
output directories, content types) so the scheduler and correlator
never hardcode tool knowledge.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable

import yaml

from .errors import ToolTableError, UnknownToolError


logger = logging.getLogger(__name__)

DEFAULT_TOOL_TABLE_PATH = Path(__file__).parent / "tools.yaml"
SUPPORTED_TABLE_VERSIONS = {1}


class ContentType(Enum):
    """How every file written to an output directory is interpreted."""
    MARKDOWN = "markdown"
    TEXT = "text"
    HTML = "html"
    IMAGE = "image"


@dataclass(frozen=True)
class OutputChannel:
    """One output directory written by a tool."""
    name: str                   # directory under the output root, e.g. "surya_graph"
    content_type: ContentType


@dataclass(frozen=True)
class ToolProfile:
    """An enabled tool and the output directories it writes."""
    name: str                   # orchestration service name
    outputs: tuple[OutputChannel, ...]
    project_only: bool = False  # only meaningful on project (truffle/git) runs


@dataclass
class ToolRun:
    """One output channel of a scheduled tool, as seen by a single run.

    Multi-channel tools (surya) get one run per output directory, all
    sharing the same tool name.
    """
    name: str                   # enabled tool, e.g. "surya"
    channel: str                # output directory, e.g. "surya_graph"
    content_type: ContentType
    output_root_exists: bool = False


@dataclass(frozen=True)
class ToolTable:
    """Immutable, versioned table of enabled tools."""

    version: int
    tools: tuple[ToolProfile, ...]

    @property
    def names(self) -> list[str]:
        return [tool.name for tool in self.tools]

    @property
    def channels(self) -> list[OutputChannel]:
        return [channel for tool in self.tools for channel in tool.outputs]

    def get(self, name: str) -> ToolProfile:
        """Get a tool profile by name.

        Raises:
            UnknownToolError: If the tool is not enabled
        """
        for tool in self.tools:
            if tool.name == name:
                return tool
        raise UnknownToolError(name, self.names)

    def validate(self, names: Iterable[str]) -> list[str]:
        """Check that every name is an enabled tool.

        Returns:
            The names with duplicates removed, order preserved

        Raises:
            UnknownToolError: On the first name that is not enabled
        """
        selected: list[str] = []
        for name in names:
            self.get(name)
            if name not in selected:
                selected.append(name)
        return selected

    def default_selection(self, project_run: bool) -> list[str]:
        """Tools to run when none are requested explicitly."""
        return [
            tool.name for tool in self.tools
            if project_run or not tool.project_only
        ]

    def content_type_for(self, channel_name: str) -> ContentType | None:
        """Content type of an output directory, or None if no tool writes it."""
        for channel in self.channels:
            if channel.name == channel_name:
                return channel.content_type
        return None

    def plan(self, names: Iterable[str]) -> list[ToolRun]:
        """Create the tool runs for a validated selection."""
        runs = []
        for name in self.validate(names):
            for channel in self.get(name).outputs:
                runs.append(ToolRun(
                    name=name,
                    channel=channel.name,
                    content_type=channel.content_type,
                ))
        return runs


def _parse_tool(data: dict, source: Path) -> ToolProfile:
    name = data.get("name")
    if not name:
        raise ToolTableError(f"Tool entry without a name in {source}")

    outputs = []
    for output in data.get("outputs") or [{"dir": name, "content_type": "text"}]:
        raw_type = output.get("content_type", "")
        try:
            content_type = ContentType(raw_type)
        except ValueError:
            valid = ", ".join(t.value for t in ContentType)
            raise ToolTableError(
                f"Unknown content type '{raw_type}' for tool '{name}'. Valid types: {valid}"
            ) from None
        outputs.append(OutputChannel(name=output.get("dir", name), content_type=content_type))

    return ToolProfile(
        name=name,
        outputs=tuple(outputs),
        project_only=bool(data.get("project_only", False)),
    )


def load_tool_table(path: Path | None = None) -> ToolTable:
    """Load the tool table from YAML.

    Args:
        path: Table file. Defaults to the packaged tools.yaml

    Raises:
        ToolTableError: If the file is unreadable or malformed
    """
    path = path or DEFAULT_TOOL_TABLE_PATH
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ToolTableError(f"Failed to load tool table {path}: {e}") from e

    if not isinstance(data, dict) or "version" not in data:
        raise ToolTableError(f"Tool table {path} has no version")
    if data["version"] not in SUPPORTED_TABLE_VERSIONS:
        raise ToolTableError(f"Unsupported tool table version {data['version']} in {path}")

    tools = tuple(_parse_tool(entry, path) for entry in data.get("tools") or [])
    if not tools:
        raise ToolTableError(f"Tool table {path} enables no tools")

    names = [tool.name for tool in tools]
    if len(set(names)) != len(names):
        raise ToolTableError(f"Tool table {path} lists a tool twice")

    logger.debug("Loaded tool table v%s with %d tools", data["version"], len(tools))
    return ToolTable(version=data["version"], tools=tools)
