"""
Report assembly and rendering.

assemble_report() merges identities, content variants and correlated
tool outputs into the model the template consumes. ReportRenderer turns
that model into one self-contained HTML document.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, Mapping

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from .correlator import ToolOutput
from .errors import CorrelationError, RenderError
from .naming import MIGRATIONS_CONTRACT, ContractIdentity
from .workspace import Workspace


logger = logging.getLogger(__name__)

REPORT_EXTENSION = ".html"


@dataclass(frozen=True)
class ContentVariants:
    """The three texts of one contract. Only the flattened one is guaranteed."""

    flattened: str
    original: str | None = None
    combined: str | None = None


@dataclass(frozen=True)
class ContractEntry:
    identity: ContractIdentity
    variants: ContentVariants
    outputs: dict[str, ToolOutput] = field(default_factory=dict)


@dataclass(frozen=True)
class AggregatedReportModel:
    """Everything the report shows, keyed by canonical name in discovery order."""

    contracts: dict[str, ContractEntry] = field(default_factory=dict)

    @property
    def tools(self) -> list[str]:
        """Tools with output for at least one contract, in first-seen order."""
        seen: list[str] = []
        for entry in self.contracts.values():
            for tool in entry.outputs:
                if tool not in seen:
                    seen.append(tool)
        return seen

    def __len__(self) -> int:
        return len(self.contracts)


def _read_variant(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise CorrelationError(f"Failed to read contract source {path}: {e}") from e


def _read_optional(path: Path) -> str | None:
    if not path.is_file():
        return None
    return _read_variant(path)


def load_variants(workspace: Workspace, identity: ContractIdentity) -> ContentVariants:
    """Read the content variants of a contract from a prepared workspace.

    Dependency contracts have no original in the contracts tree and are
    usually missing from the combined tree; both come back as None.

    Raises:
        CorrelationError: If a variant file exists but cannot be read
    """
    return ContentVariants(
        flattened=_read_variant(workspace.flattened_path(identity)),
        original=_read_optional(workspace.original_path(identity)),
        combined=_read_optional(workspace.combined_path(identity)),
    )


def assemble_report(
    identities: Iterable[ContractIdentity],
    variants: Mapping[str, ContentVariants],
    outputs: Mapping[str, Mapping[str, ToolOutput]],
) -> AggregatedReportModel:
    """Merge identities, variants and tool outputs into one model.

    Every identity appears exactly once, with or without tool outputs.
    """
    contracts: dict[str, ContractEntry] = {}
    for identity in identities:
        name = identity.canonical_name
        if name == MIGRATIONS_CONTRACT or name in contracts:
            continue
        contracts[name] = ContractEntry(
            identity=identity,
            variants=variants[name],
            outputs=dict(outputs.get(name, {})),
        )
    return AggregatedReportModel(contracts=contracts)


def normalize_destination(path: Path) -> Path:
    """Report path with the .html extension appended when missing."""
    path = Path(path).expanduser()
    if path.suffix.lower() != REPORT_EXTENSION:
        path = path.with_name(path.name + REPORT_EXTENSION)
    return path.resolve()


class ReportRenderer:
    """Renders the aggregated model through a Jinja2 template."""

    def __init__(self, template_path: Path):
        self.template_path = Path(template_path)

    def render(self, model: AggregatedReportModel, title: str = "solhydra report") -> str:
        """Render the model to an HTML document.

        Raises:
            RenderError: If the template is missing or fails to render
        """
        if not self.template_path.is_file():
            raise RenderError(f"Report template not found: {self.template_path}")

        env = Environment(
            loader=FileSystemLoader(str(self.template_path.parent)),
            autoescape=select_autoescape(["html", "j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        try:
            template = env.get_template(self.template_path.name)
            return template.render(
                title=title,
                model=model,
                contracts=list(model.contracts.values()),
                tools=model.tools,
                generated_at=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            )
        except TemplateError as e:
            raise RenderError(f"Failed to render report: {e}") from e

    def write(self, model: AggregatedReportModel, destination: Path) -> Path:
        """Render the model and write it to destination."""
        html = self.render(model)
        destination = normalize_destination(destination)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(html, encoding="utf-8")
        except OSError as e:
            raise RenderError(f"Failed to write report to {destination}: {e}") from e
        logger.info("Report written to %s", destination)
        return destination
