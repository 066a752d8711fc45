"""
Error types and per-stage error collection for the build pipeline.

Stages that work on many independent files (relocation, vendor copy) record
failures in an ErrorCollector instead of stopping at the first one, then
decide at the end of the stage whether the failures are fatal.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


class SdcBuildError(Exception):
    """Base class for all sdcbuild errors."""

    pass


class ConfigError(SdcBuildError):
    """Raised when sdcbuild.yml is malformed or declares unknown keys."""

    pass


class ToolNotFoundError(SdcBuildError):
    """Raised when a required Node tool (esbuild, sass, stylelint) cannot be located."""

    pass


class BundlerError(SdcBuildError):
    """Raised when a bundling tool exits with a non-zero status.

    Attributes:
        tool: Name of the tool that failed
        returncode: Exit status of the tool
        stderr: Captured standard error of the tool
    """

    def __init__(self, tool: str, returncode: int, stderr: str = ""):
        self.tool = tool
        self.returncode = returncode
        self.stderr = stderr
        message = f"{tool} exited with status {returncode}"
        if stderr.strip():
            message += f"\n{stderr.strip()}"
        super().__init__(message)


class RelocationError(SdcBuildError):
    """Raised after a relocation pass in which one or more artifacts failed to move."""

    def __init__(self, errors: list["StageError"]):
        self.errors = errors
        super().__init__(f"{len(errors)} artifact(s) failed to relocate")


@dataclass
class StageError:
    """Single failure recorded by a pipeline stage."""

    stage: str  # "cleanup", "vendor", "relocate", "lint"
    file_path: Optional[str]
    error_message: str
    timestamp: float = field(default_factory=time.time)

    def format(self) -> str:
        """Format error as human-readable string."""
        if self.file_path:
            return f"[{self.stage}] {self.file_path}: {self.error_message}"
        return f"[{self.stage}] {self.error_message}"


class ErrorCollector:
    """Collects stage errors for one pipeline run."""

    def __init__(self, max_errors: int = 100):
        self.errors: list[StageError] = []
        self.max_errors = max_errors

    def add_error(self, stage: str, file_path: Optional[str], error: BaseException | str) -> StageError:
        """Record a failure and return the stored record."""
        record = StageError(stage=stage, file_path=file_path, error_message=str(error))
        if len(self.errors) >= self.max_errors:
            logger.warning(f"ErrorCollector full ({self.max_errors} errors), dropping oldest")
            self.errors.pop(0)
        self.errors.append(record)
        logger.debug(f"Recorded {stage} error: {record.format()}")
        return record

    def get_errors(self, stage: Optional[str] = None) -> list[StageError]:
        """Get all errors, optionally filtered by stage."""
        if stage:
            return [e for e in self.errors if e.stage == stage]
        return list(self.errors)

    def has_errors(self) -> bool:
        return bool(self.errors)

    def clear(self) -> None:
        self.errors.clear()

    def format_errors(self) -> str:
        """Format every collected error, one per line."""
        return "\n".join(e.format() for e in self.errors)
