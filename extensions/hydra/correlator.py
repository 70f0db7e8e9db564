"""
Output correlation.

Tools run once against the whole flattened tree and write one file per
canonical name into their output directory, so correlating outputs with
contracts is a lookup by canonical name. A missing file means the tool
had nothing to say about that contract; an empty output directory means
the tool did not run or skipped every file, and is left out entirely.
"""

import base64
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

import markdown

from .errors import CorrelationError
from .naming import ContractIdentity
from .tools import ContentType, ToolTable


logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@dataclass(frozen=True)
class ToolOutput:
    """One tool's output file for one contract."""

    tool: str
    content_type: ContentType
    content: str                # HTML for markdown, base64 for images
    media_type: str | None = None


def markdown_to_html(text: str) -> str:
    return markdown.markdown(text, extensions=["fenced_code", "tables"])


def sniff_image_type(data: bytes) -> str:
    if data.startswith(PNG_SIGNATURE):
        return "image/png"
    head = data[:256].lstrip()
    if head.startswith(b"<svg") or head.startswith(b"<?xml"):
        return "image/svg+xml"
    if data.startswith(b"\xff\xd8"):
        return "image/jpeg"
    return "image/png"


class OutputCorrelator:
    """Maps tool output files back to contract identities."""

    def __init__(
        self,
        table: ToolTable,
        output_root: Path,
        markdown_converter: Callable[[str], str] = markdown_to_html,
    ):
        """Initialize correlator.

        Args:
            table: Tool table with the content type of every output directory
            output_root: Workspace output root
            markdown_converter: Converts markdown output to HTML
        """
        self.table = table
        self.output_root = output_root
        self.markdown_converter = markdown_converter

    def active_tools(self) -> list[str]:
        """Output directories that received at least one file, sorted."""
        if not self.output_root.is_dir():
            return []

        active = []
        for out_dir in sorted(self.output_root.iterdir()):
            if not out_dir.is_dir() or not any(out_dir.iterdir()):
                continue
            if self.table.content_type_for(out_dir.name) is None:
                logger.warning("Ignoring output directory of unknown tool: %s", out_dir.name)
                continue
            active.append(out_dir.name)
        return active

    def has_output(self, tool: str, identity: ContractIdentity) -> bool:
        return (self.output_root / tool / identity.canonical_name).is_file()

    def read_output(self, tool: str, identity: ContractIdentity) -> ToolOutput | None:
        """Read and classify one output file, or None if the tool wrote none.

        Raises:
            CorrelationError: If the file exists but cannot be read
        """
        if not self.has_output(tool, identity):
            return None

        content_type = self.table.content_type_for(tool)
        if content_type is None:
            return None

        path = self.output_root / tool / identity.canonical_name

        try:
            if content_type == ContentType.IMAGE:
                data = path.read_bytes()
            else:
                text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise CorrelationError(f"Failed to read tool output {path}: {e}") from e

        if content_type == ContentType.IMAGE:
            return ToolOutput(
                tool=tool,
                content_type=content_type,
                content=base64.b64encode(data).decode("ascii"),
                media_type=sniff_image_type(data),
            )

        if content_type == ContentType.MARKDOWN:
            text = self.markdown_converter(text)

        return ToolOutput(tool=tool, content_type=content_type, content=text)

    def correlate(
        self,
        identities: Iterable[ContractIdentity],
    ) -> dict[str, dict[str, ToolOutput]]:
        """Collect tool outputs per contract.

        Returns:
            canonical name -> tool output directory -> ToolOutput, with
            absent pairs left out
        """
        tools = self.active_tools()
        logger.debug("Tools with output: %s", ", ".join(tools) or "none")

        result: dict[str, dict[str, ToolOutput]] = {}
        for identity in identities:
            outputs = {}
            for tool in tools:
                output = self.read_output(tool, identity)
                if output is not None:
                    outputs[tool] = output
            result[identity.canonical_name] = outputs
        return result
