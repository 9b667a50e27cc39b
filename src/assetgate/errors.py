"""
Error taxonomy for assetgate.

Every fatal error derives from ``AssetGateError`` and carries the process
exit code the CLI should terminate with.  ``PresentationError`` is the one
non-fatal error: it only degrades how a result is displayed.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional


class AssetGateError(RuntimeError):
    exit_code: int = 1

    def __init__(self, message: str, *, step: Optional[str] = None) -> None:
        super().__init__(message)
        self.step = step


# ============ Configuration ============


class ConfigurationError(AssetGateError):
    exit_code = 2


class CredentialNotFound(ConfigurationError):
    pass


class KeystoreAmbiguous(ConfigurationError):
    pass


class KeystoreUnreadable(ConfigurationError):
    pass


class IdentityNotFound(ConfigurationError):
    pass


# ============ Wallet ============


class StorageError(AssetGateError):
    exit_code = 3


# ============ Session ============


class GatewayConnectionError(AssetGateError):
    """Session establishment failed (negotiation, TLS, or discovery)."""

    exit_code = 4


class NetworkNotFound(AssetGateError):
    exit_code = 5


# ============ Transactions ============


class TransactionError(AssetGateError):
    exit_code = 6

    def __init__(
        self,
        message: str,
        *,
        function: Optional[str] = None,
        tx_id: Optional[str] = None,
        step: Optional[str] = None,
    ) -> None:
        super().__init__(message, step=step)
        self.function = function
        self.tx_id = tx_id


class EvaluateError(TransactionError):
    pass


class SubmitError(TransactionError):
    """A submit failed in one of its stages: ``endorse``, ``order`` or ``commit``.

    The ledger may still have applied the transaction when the failure was
    on the client side of the ``order`` or ``commit`` stage.
    """

    def __init__(
        self,
        message: str,
        *,
        stage: str,
        function: Optional[str] = None,
        tx_id: Optional[str] = None,
        step: Optional[str] = None,
    ) -> None:
        super().__init__(message, function=function, tx_id=tx_id, step=step)
        self.stage = stage
        self.diagnostics: Any = None


# ============ Diagnostics ============


class DiagnosticError(AssetGateError):
    exit_code = 7


# ============ Workflow ============


class WorkflowError(AssetGateError):
    """A workflow step failed; ``cause`` holds the underlying error."""

    def __init__(self, step: str, cause: AssetGateError) -> None:
        super().__init__(f"{step}: {cause}", step=step)
        self.cause = cause
        self.exit_code = cause.exit_code


# ============ Presentation ============


class PresentationError(ValueError):
    pass


@contextmanager
def in_step(name: str) -> Iterator[None]:
    """Tag any AssetGateError escaping the block with the step it failed in."""
    try:
        yield
    except AssetGateError as exc:
        if exc.step is None:
            exc.step = name
        raise
