__all__ = [
    # Identity
    "Identity",
    "load_credentials",
    "Wallet",
    "provision",
    # Session
    "ConnectionProfile",
    "Endpoint",
    "load_profile",
    "connect",
    "Gateway",
    "Network",
    "Contract",
    # Presentation / diagnostics
    "Presentation",
    "present",
    "ProbeReport",
    "ContainerInfo",
    "probe_containers",
    # Workflow
    "Step",
    "StepResult",
    "DEFAULT_STEPS",
    "run_workflow",
    # Errors
    "AssetGateError",
    "ConfigurationError",
    "CredentialNotFound",
    "KeystoreAmbiguous",
    "KeystoreUnreadable",
    "IdentityNotFound",
    "StorageError",
    "GatewayConnectionError",
    "NetworkNotFound",
    "TransactionError",
    "SubmitError",
    "EvaluateError",
    "DiagnosticError",
    "WorkflowError",
    "PresentationError",
]

from .errors import (
    AssetGateError,
    ConfigurationError,
    CredentialNotFound,
    DiagnosticError,
    EvaluateError,
    GatewayConnectionError,
    IdentityNotFound,
    KeystoreAmbiguous,
    KeystoreUnreadable,
    NetworkNotFound,
    PresentationError,
    StorageError,
    SubmitError,
    TransactionError,
    WorkflowError,
)
from .sigil.credentials import Identity, load_credentials
from .sigil.wallet import Wallet, provision
from .pneuma.profile import ConnectionProfile, Endpoint, load_profile
from .pneuma.gateway import Gateway, Network, connect
from .pneuma.tx import Contract
from .pneuma.probe import ContainerInfo, ProbeReport, probe_containers
from .present import Presentation, present
from .workflow import DEFAULT_STEPS, Step, StepResult, run_workflow
