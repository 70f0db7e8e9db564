"""
Multi-tool analysis pipeline for Solidity contracts.

Prepares a workspace with the original, flattened and combined variant
of every contract, runs the analysis fleet through docker-compose and
correlates each tool's per-file output back to its contract for one
consolidated HTML report.
"""

from .config import HydraConfig
from .correlator import OutputCorrelator, ToolOutput
from .errors import (
    ConfigurationError,
    CorrelationError,
    HydraError,
    JobExecutionError,
    MalformedIdentityError,
    MissingInputError,
    PreparationError,
    RenderError,
    RepositoryFetchError,
    SlugCollisionError,
    ToolTableError,
    UnknownToolError,
)
from .naming import ContractIdentity, build_identities, nested_path, slug_for
from .pipeline import PipelineResult, ReportPipeline, RunRequest, validate_request
from .preparer import ArtifactPreparer, PreparationRequest
from .report import AggregatedReportModel, ContentVariants, ReportRenderer, assemble_report
from .scheduler import JobScheduler
from .soljitsu_runner import SoljitsuRunner
from .tools import ContentType, ToolRun, ToolTable, load_tool_table
from .workspace import Workspace

__all__ = [
    # Config
    "HydraConfig",
    "ToolTable",
    "ContentType",
    "ToolRun",
    "load_tool_table",
    # Naming
    "ContractIdentity",
    "build_identities",
    "nested_path",
    "slug_for",
    # Stages
    "Workspace",
    "ArtifactPreparer",
    "PreparationRequest",
    "SoljitsuRunner",
    "JobScheduler",
    "OutputCorrelator",
    "ToolOutput",
    "AggregatedReportModel",
    "ContentVariants",
    "ReportRenderer",
    "assemble_report",
    # Pipeline
    "ReportPipeline",
    "RunRequest",
    "PipelineResult",
    "validate_request",
    # Errors
    "HydraError",
    "ConfigurationError",
    "CorrelationError",
    "UnknownToolError",
    "MissingInputError",
    "ToolTableError",
    "MalformedIdentityError",
    "SlugCollisionError",
    "PreparationError",
    "JobExecutionError",
    "RepositoryFetchError",
    "RenderError",
]
