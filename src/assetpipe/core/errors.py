# src/assetpipe/core/errors.py

"""
Error taxonomy.

Everything the pipeline raises on purpose derives from PipelineError, so the CLI
can tell expected failures (print a message, exit non-zero) from bugs (traceback).
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class UnknownTaskError(PipelineError):
    def __init__(self, name: str, *, referenced_by: str | None = None) -> None:
        self.name = name
        self.referenced_by = referenced_by
        msg = f"Unknown task: {name!r}"
        if referenced_by:
            msg += f" (referenced by {referenced_by!r})"
        super().__init__(msg)


class DuplicateTaskError(PipelineError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Task already defined: {name!r}")


class TaskCycleError(PipelineError):
    def __init__(self, path: list[str]) -> None:
        self.path = list(path)
        super().__init__("Task cycle detected: " + " -> ".join(self.path))


class MissingEntryDocumentError(PipelineError):
    def __init__(self, path) -> None:
        self.path = path
        super().__init__(f"Entry document not found: {path}")


class TransformFailure(PipelineError):
    """An underlying minifier/codec rejected its input (or the input could not be read)."""

    def __init__(self, transform: str, message: str, *, path=None) -> None:
        self.transform = transform
        self.path = path
        where = f" [{path}]" if path is not None else ""
        super().__init__(f"{transform}{where}: {message}")


class ServerBindError(PipelineError):
    def __init__(self, host: str, port: int, cause: BaseException | None = None) -> None:
        self.host = host
        self.port = port
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Cannot bind dev server to {host}:{port}{detail}")


class CapabilityUnavailableError(PipelineError):
    """A required codec/library feature is missing; raised once at start-up."""


class TaskFailedError(PipelineError):
    """A leaf task failed; wraps the underlying cause with the task name."""

    def __init__(self, task: str, cause: BaseException) -> None:
        self.task = task
        self.cause = cause
        super().__init__(f"Task {task!r} failed: {cause}")


class ParallelTaskError(PipelineError):
    """One or more children of a parallel group failed; carries every failure."""

    def __init__(self, task: str, failures: list[PipelineError]) -> None:
        self.task = task
        self.failures = list(failures)
        super().__init__(
            f"Task {task!r}: {len(self.failures)} of its parallel children failed"
        )

    def leaf_failures(self) -> list[PipelineError]:
        """Flatten nested groups into the list of leaf-level failures."""
        out: list[PipelineError] = []
        for f in self.failures:
            if isinstance(f, ParallelTaskError):
                out.extend(f.leaf_failures())
            else:
                out.append(f)
        return out
