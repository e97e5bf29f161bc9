# relay_control/core/errors.py

# -----------------------------
# Base Errors
# -----------------------------

class RelayControlError(Exception):
    """Base class for all relay control errors."""
    pass


class ApplyError(RelayControlError):
    """
    Base class for errors raised out of an apply run.

    ``result`` holds whatever the run had recorded when it stopped.
    """

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


# -----------------------------
# Pipeline aborts (fatal, nothing validated or restarted)
# -----------------------------

class SnapshotError(ApplyError):
    """Storage unavailable or loaded data violates snapshot invariants."""
    pass


class GenerationError(ApplyError):
    """Snapshot could not be rendered (malformed record)."""
    pass


class WriteError(ApplyError):
    """Filesystem or permission failure while writing an artifact."""
    pass


# -----------------------------
# Post-write outcomes (result always populated)
# -----------------------------

class ValidationFailure(ApplyError):
    """Engine rejected the generated policy. Service left untouched."""
    pass


class RestartFailure(ApplyError):
    """Policy validated but the engine service did not restart."""
    pass


# -----------------------------
# Persistence Errors
# -----------------------------

class RepositoryError(RelayControlError):
    pass


class DomainAlreadyExists(RepositoryError):
    pass


class DomainNotFound(RepositoryError):
    pass


class SenderNotFound(RepositoryError):
    pass
