"""Scan inputs and outcomes exchanged with callers of the pipeline."""

from dataclasses import dataclass, field
from enum import Enum


class ScanStatus(str, Enum):
    """Status recorded on a persisted scan session."""

    COMPLETED = "completed"
    PARTIAL = "partial"


class FailureStage(str, Enum):
    """Pipeline stage at which a repository target failed."""

    SKIPPED = "skipped"
    CLONE = "clone"
    SCAN = "scan"


@dataclass(frozen=True)
class RepositoryScanTarget:
    """A repository to scan and the team that owns it."""

    url: str
    team_name: str
    team_code: str
    active: bool = True


@dataclass(frozen=True)
class RepositoryFailure:
    """A target that contributed nothing to the session, and why."""

    url: str
    stage: FailureStage
    reason: str

    def describe(self) -> str:
        return f"{self.url} [{self.stage.value}]: {self.reason}"


@dataclass(frozen=True)
class ScanCredentials:
    """Optional authentication passed to every git invocation."""

    username: str | None = None
    password: str | None = None
    ssh_key_path: str | None = None

    def __repr__(self) -> str:
        return (
            f"ScanCredentials(username={self.username!r}, "
            f"password={'***' if self.password else None}, ssh_key_path={self.ssh_key_path!r})"
        )


@dataclass
class ScanOutcome:
    """Final signal of an orchestrated run.

    Attributes:
        success: True when at least one repository was processed and the session persisted
        session_id: Primary scan session id (None when nothing was persisted)
        total_targets: Number of targets considered after the per-run cap
        succeeded: Repositories that contributed to the session
        counts: Session rollup counters
        failures: Every target that failed, with its stage and reason
        duration_ms: Elapsed time from orchestration start to end of persistence
        shadow_session_id: Session id in the shadow store, when shadow writes ran
        shadow_error: Shadow failure message, the primary result is unaffected
        stopped_early: True when a stop request cut the run short
        error: Fatal error message when the run failed as a whole
    """

    success: bool
    session_id: int | None = None
    total_targets: int = 0
    succeeded: int = 0
    counts: dict[str, int] = field(default_factory=dict)
    failures: list[RepositoryFailure] = field(default_factory=list)
    duration_ms: int = 0
    shadow_session_id: int | None = None
    shadow_error: str | None = None
    stopped_early: bool = False
    error: str | None = None

    def summary_text(self) -> str:
        """Human-readable one-line summary of the run."""
        state = "succeeded" if self.success else "failed"
        text = f"Scan {state}: {self.succeeded} of {self.total_targets} repositories processed"
        if self.session_id is not None:
            text += f", session {self.session_id}"
        if self.failures:
            text += f", {len(self.failures)} failed"
        if self.stopped_early:
            text += ", stopped early"
        if self.error:
            text += f" ({self.error})"
        return text
