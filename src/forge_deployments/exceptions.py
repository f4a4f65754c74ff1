"""Custom exception classes for forge-deployments library."""

from typing import Optional


class DeploymentError(Exception):
    """
    Base exception for deployment-related errors.

    Raised directly for fatal, unrecoverable deployment failures. The optional
    context names the contract and network, and ``detail`` holds the
    (already redacted) failure text reported by the deploy tool.
    """

    def __init__(
        self,
        message: str = "",
        contract_name: Optional[str] = None,
        network: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        super().__init__(message)
        self.contract_name = contract_name
        self.network = network
        self.detail = detail


class ExtractionError(DeploymentError, ValueError):
    """Raised when no contract address can be found in successful deploy output."""

    pass


class ConfigurationError(DeploymentError, ValueError):
    """Raised when network configuration is missing or invalid."""

    pass


class ArtifactNotFoundError(DeploymentError, FileNotFoundError):
    """Raised when no deployment record exists, or its address is zero."""

    pass


class VerificationError(DeploymentError, RuntimeError):
    """Raised when block-explorer verification fails."""

    pass


class ScriptNotFoundError(DeploymentError, FileNotFoundError):
    """Raised when the deploy script directory does not exist."""

    pass


class DeployScriptError(DeploymentError, ValueError):
    """Raised when deploy scripts are missing or cannot be matched to contracts."""

    pass
