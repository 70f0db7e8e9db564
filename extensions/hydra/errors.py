"""
Error taxonomy for a solhydra run.

Every failure that should end a run derives from HydraError so the
command layer can clean up and exit from a single place.
"""


class HydraError(Exception):
    """Base class for all solhydra errors."""
    pass


class ConfigurationError(HydraError):
    """Invalid invocation, detected before any workspace is touched."""
    pass


class UnknownToolError(ConfigurationError):
    """A requested tool is not in the enabled tool set."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        super().__init__(
            f"'{name}' is not a valid tool, valid tools are: {', '.join(available)}"
        )


class MissingInputError(ConfigurationError):
    """A required input path is missing or does not exist."""
    pass


class ToolTableError(ConfigurationError):
    """The tool table could not be loaded or is malformed."""
    pass


class MalformedIdentityError(HydraError):
    """A flattened filename cannot be mapped back to a nested path."""
    pass


class SlugCollisionError(HydraError):
    """Two canonical names collapse to the same slug."""

    def __init__(self, slug: str, first: str, second: str):
        self.slug = slug
        self.names = (first, second)
        super().__init__(
            f"Contracts '{first}' and '{second}' both map to slug '{slug}'"
        )


class PreparationError(HydraError):
    """Copying or transforming inputs into the workspace failed."""
    pass


class JobExecutionError(HydraError):
    """The orchestration layer exited with a non-zero status."""

    def __init__(self, message: str, exit_code: int | None = None):
        self.exit_code = exit_code
        super().__init__(message)


class CorrelationError(HydraError):
    """A tool output or content variant exists but cannot be read."""
    pass


class RepositoryFetchError(HydraError):
    """Cloning a remote repository or installing its dependencies failed."""
    pass


class RenderError(HydraError):
    """The report template is missing or failed to render."""
    pass
