"""Exception hierarchy for the scan pipeline."""

from typing import Any


class TestHubError(Exception):
    """Base exception for TestHub errors with context."""

    __test__ = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        """
        Initialize TestHub error.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            context: Additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "INTERNAL_ERROR"
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to a log/report friendly dictionary."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


class ConfigurationError(TestHubError):
    """Invalid settings or scan inputs, raised before any scan work."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message=message, error_code="CONFIGURATION_ERROR", context=context)


class RepositoryListError(TestHubError):
    """One or more malformed lines in a repository list."""

    def __init__(
        self,
        source: str,
        invalid_lines: list[tuple[int, str, str]],
    ):
        """
        Initialize repository list error.

        Args:
            source: Path or label of the list being read
            invalid_lines: (line number, raw line, reason) for every rejected line
        """
        preview = "; ".join(f"line {num}: {reason}" for num, _, reason in invalid_lines[:5])
        super().__init__(
            message=f"{len(invalid_lines)} invalid line(s) in {source}: {preview}",
            error_code="REPOSITORY_LIST_ERROR",
            context={"source": source, "invalid_lines": invalid_lines},
        )
        self.invalid_lines = invalid_lines


class GitOperationError(TestHubError):
    """A git process exited non-zero or timed out."""

    def __init__(
        self,
        operation: str,
        message: str,
        timed_out: bool = False,
        context: dict[str, Any] | None = None,
    ):
        ctx = context or {}
        ctx["operation"] = operation
        ctx["timed_out"] = timed_out
        super().__init__(message=message, error_code="GIT_ERROR", context=ctx)
        self.operation = operation
        self.timed_out = timed_out


class SourceParseError(TestHubError):
    """A source file could not be read or parsed."""

    def __init__(self, file_path: str, message: str):
        super().__init__(
            message=f"{file_path}: {message}",
            error_code="PARSE_ERROR",
            context={"file_path": file_path},
        )
        self.file_path = file_path


class PersistenceError(TestHubError):
    """A scan session transaction failed and was rolled back."""

    def __init__(
        self,
        message: str,
        error_code: str = "PERSISTENCE_ERROR",
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message=message, error_code=error_code, context=context)


class ShadowPersistenceError(PersistenceError):
    """The shadow store rejected a scan session."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message=message, error_code="SHADOW_PERSISTENCE_ERROR", context=context)


class StartupCheckError(TestHubError):
    """A precondition for scanning is not met."""

    def __init__(self, check: str, message: str):
        super().__init__(
            message=message,
            error_code="STARTUP_CHECK_FAILED",
            context={"check": check},
        )
        self.check = check


__all__ = [
    "TestHubError",
    "ConfigurationError",
    "RepositoryListError",
    "GitOperationError",
    "SourceParseError",
    "PersistenceError",
    "ShadowPersistenceError",
    "StartupCheckError",
]
