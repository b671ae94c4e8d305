"""Exception hierarchy for aumos-codeowners.

Errors fall into three groups:

- Configuration errors are raised at setup time, never during per-file
  evaluation (:class:`ConfigurationError`).
- Declaration parse errors are per directory and non-fatal. The owner
  resolver logs them and keeps walking (:class:`DeclarationParseError`).
- Structural errors abort a whole status computation and map to a
  conflict at the presentation layer (:class:`DestinationBranchNotFoundError`,
  :class:`PatchSetNotFoundError`, :class:`RevisionNotFoundError`).
"""
from __future__ import annotations


class CodeOwnersError(Exception):
    """Base class for every error raised by aumos-codeowners."""


class ConfigurationError(CodeOwnersError, ValueError):
    """Raised when the code-owners configuration is malformed or invalid.

    Attributes
    ----------
    config_path:
        The path to the config file that caused the error, if known.
    """

    def __init__(self, message: str, config_path: str | None = None) -> None:
        self.config_path = config_path
        prefix = f"[{config_path}] " if config_path else ""
        super().__init__(f"{prefix}{message}")


class DeclarationParseError(CodeOwnersError, ValueError):
    """Raised when an ownership declaration exists but cannot be parsed.

    Attributes
    ----------
    directory:
        Absolute directory of the broken declaration, if known.
    revision:
        Revision the declaration was read from, if known.
    """

    def __init__(
        self,
        message: str,
        directory: str | None = None,
        revision: str | None = None,
    ) -> None:
        self.directory = directory
        self.revision = revision
        if directory and revision:
            prefix = f"[{directory}@{revision}] "
        elif directory:
            prefix = f"[{directory}] "
        else:
            prefix = ""
        super().__init__(f"{prefix}{message}")


class StructuralError(CodeOwnersError):
    """Base class for errors that abort a whole status computation.

    The presentation layer should surface these as a conflict.
    """


class DestinationBranchNotFoundError(StructuralError):
    """Raised when the destination branch of a change no longer exists."""

    def __init__(self, project: str, branch: str) -> None:
        self.project = project
        self.branch = branch
        super().__init__(
            f"Destination branch {branch!r} of project {project!r} not found."
        )


class PatchSetNotFoundError(StructuralError):
    """Raised when a requested patch set does not exist on a change."""

    def __init__(self, change_id: str, patch_set_id: int | None = None) -> None:
        self.change_id = change_id
        self.patch_set_id = patch_set_id
        if patch_set_id is None:
            message = f"Change {change_id!r} has no patch sets."
        else:
            message = f"Patch set {patch_set_id} not found on change {change_id!r}."
        super().__init__(message)


class RevisionNotFoundError(StructuralError):
    """Raised when a revision cannot be resolved in the repository."""

    def __init__(self, revision: str) -> None:
        self.revision = revision
        super().__init__(f"Revision {revision!r} not found.")
