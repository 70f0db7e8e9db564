"""
Report pipeline orchestrator.

Runs the stages of one report strictly in sequence:

    fetch (git runs) -> prepare -> schedule -> correlate -> assemble -> render

Each stage's output is on disk before the next one reads it. The
workspace is torn down on every exit path, and tool containers are
asked to stop whenever a run ends.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from analysis.project_layout import ProjectLayout, is_truffle_project, truffle_layout

from .config import HydraConfig
from .correlator import OutputCorrelator
from .errors import ConfigurationError, MissingInputError
from .naming import build_identities
from .preparer import ArtifactPreparer, PreparationRequest
from .report import (
    AggregatedReportModel,
    ReportRenderer,
    assemble_report,
    load_variants,
    normalize_destination,
)
from .repo import clone_repository, install_dependencies
from .scheduler import JobScheduler
from .soljitsu_runner import SoljitsuRunner, Transform
from .tools import ToolRun, ToolTable
from .workspace import Workspace, is_valid_workspace_id


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunRequest:
    """One invocation. Exactly one of contract_dir, project_dir, git_url is set."""

    destination: Path
    contract_dir: Path | None = None
    project_dir: Path | None = None
    git_url: str | None = None
    dependency_dirs: tuple[Path, ...] = ()
    tools: tuple[str, ...] = ()
    workspace_id: str | None = None

    @property
    def is_project_run(self) -> bool:
        return self.project_dir is not None or self.git_url is not None


@dataclass
class PipelineResult:
    """Result from running the report pipeline."""

    model: AggregatedReportModel
    report_path: Path
    tool_runs: list[ToolRun] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)

    def summary(self) -> str:
        """Generate a summary string."""
        with_output = [run.channel for run in self.tool_runs if run.output_root_exists]
        lines = [
            "Report Results:",
            f"  Contracts: {len(self.model)}",
            f"  Tools with output: {', '.join(with_output) or 'none'}",
            f"  Report: {self.report_path}",
        ]
        return "\n".join(lines)


def validate_request(request: RunRequest, table: ToolTable) -> list[str]:
    """Check a request before anything touches the filesystem.

    Returns:
        The tools to run

    Raises:
        ConfigurationError: If not exactly one input is given, or the
            workspace id is not a lowercase token
        MissingInputError: If an input path does not exist
        UnknownToolError: If a requested tool is not enabled
    """
    inputs = [request.contract_dir, request.project_dir, request.git_url]
    if sum(value is not None for value in inputs) != 1:
        raise ConfigurationError("missing one(!) of: --contract-dir --truffle --git")

    if request.dependency_dirs and request.contract_dir is None:
        raise ConfigurationError("--dep-dir can only be used with --contract-dir")

    if request.contract_dir is not None and not request.contract_dir.is_dir():
        raise MissingInputError(f"Contract directory not found: {request.contract_dir}")

    if request.project_dir is not None:
        contracts = truffle_layout(request.project_dir).contract_dir
        if not contracts.is_dir():
            raise MissingInputError(f"Project has no contracts directory: {contracts}")
        if not is_truffle_project(request.project_dir):
            logger.warning("No truffle config in %s, assuming truffle layout", request.project_dir)

    for dep_dir in request.dependency_dirs:
        if not dep_dir.is_dir():
            raise MissingInputError(f"Dependency directory not found: {dep_dir}")

    if request.workspace_id is not None and not is_valid_workspace_id(request.workspace_id):
        raise ConfigurationError(
            f"Invalid workspace id '{request.workspace_id}': use lowercase letters, digits, '-' and '_'"
        )

    if request.tools:
        return table.validate(request.tools)
    return table.default_selection(project_run=request.is_project_run)


class ReportPipeline:
    """Orchestrates preparation, tool runs and report generation."""

    def __init__(
        self,
        config: HydraConfig,
        table: ToolTable,
        flatten: Transform | None = None,
        combine: Transform | None = None,
    ):
        """Initialize the pipeline.

        Args:
            config: Runtime configuration
            table: Enabled tools
            flatten: Flatten transform. Defaults to soljitsu
            combine: Combine transform. Defaults to soljitsu
        """
        soljitsu = SoljitsuRunner()
        self.config = config
        self.table = table
        self.flatten = flatten or soljitsu.flatten
        self.combine = combine or soljitsu.combine
        self.renderer = ReportRenderer(config.template_path)

    def create_scheduler(self, workspace: Workspace) -> JobScheduler:
        return JobScheduler(self.table, self.config, workspace)

    def run(self, request: RunRequest) -> PipelineResult:
        """Run the full pipeline.

        Raises:
            HydraError: On any failure; the workspace is already removed
        """
        tools = validate_request(request, self.table)
        if not self.config.template_path.is_file():
            raise ConfigurationError(f"Report template not found: {self.config.template_path}")
        started = datetime.now()

        with Workspace(self.config.workspace_root, request.workspace_id) as workspace:
            logger.debug("Workspace %s", workspace.path)
            scheduler = self.create_scheduler(workspace)
            try:
                self.prepare(request, workspace)
                tool_runs = scheduler.run(tools)
                model = self.collect(workspace)
            finally:
                scheduler.stop()

            report_path = self.renderer.write(model, normalize_destination(request.destination))

        result = PipelineResult(
            model=model,
            report_path=report_path,
            tool_runs=tool_runs,
            metadata={
                "workspace_id": workspace.id,
                "tools": tools,
                "run_time": started.isoformat(),
                "duration_s": round((datetime.now() - started).total_seconds(), 1),
            },
        )
        logger.debug(result.summary())
        return result

    def resolve_layout(self, request: RunRequest, workspace: Workspace) -> ProjectLayout:
        if request.git_url is not None:
            clone_repository(request.git_url, workspace.repo_dir)
            install_dependencies(workspace.repo_dir)
            layout = truffle_layout(workspace.repo_dir)
            if not layout.contract_dir.is_dir():
                raise MissingInputError(f"Repository has no contracts directory: {request.git_url}")
            return layout

        if request.project_dir is not None:
            return truffle_layout(request.project_dir)

        contract_dir = Path(request.contract_dir).resolve()
        return ProjectLayout(root=contract_dir, contract_dir=contract_dir)

    def prepare(self, request: RunRequest, workspace: Workspace) -> None:
        """Fetch (for git runs) and copy all inputs into the workspace."""
        layout = self.resolve_layout(request, workspace)
        dependency_dirs = request.dependency_dirs or layout.dependency_dirs

        preparer = ArtifactPreparer(workspace, self.flatten, self.combine)
        preparer.prepare(PreparationRequest(
            contract_dir=layout.contract_dir,
            dependency_dirs=tuple(Path(d).resolve() for d in dependency_dirs),
            manifest_path=layout.manifest_path,
            specs_dir=layout.specs_dir,
            migrations_dir=layout.migrations_dir,
        ))

        if request.git_url is not None:
            workspace.remove_repo()

    def collect(self, workspace: Workspace) -> AggregatedReportModel:
        """Correlate tool outputs and assemble the report model."""
        identities = build_identities(workspace.canonical_names())
        variants = {
            identity.canonical_name: load_variants(workspace, identity)
            for identity in identities
        }
        correlator = OutputCorrelator(self.table, workspace.output_dir)
        outputs = correlator.correlate(identities)
        return assemble_report(identities, variants, outputs)
