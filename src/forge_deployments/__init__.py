"""
forge-deployments: Python library for deploying and recording Foundry smart contract deployments
"""

import logging
from importlib.metadata import PackageNotFoundError, version

from .artifacts import existing_address, load_deployment, save_deployment
from .config import get_network_name, load_network_config
from .conflicts import ConflictResolver, FailureKind, classify_failure
from .deployments import Deployer, deploy_contract
from .exceptions import (
    ArtifactNotFoundError,
    ConfigurationError,
    DeploymentError,
    DeployScriptError,
    ExtractionError,
    ScriptNotFoundError,
    VerificationError,
)
from .invoker import ProcessInvoker
from .parsers import extract_deploy_output
from .scripts import DeployContext, run_deploy_scripts
from .types import (
    DeploymentRecord,
    DeploymentRequest,
    DeployOptions,
    DeployOutput,
    NetworkConfig,
    ProcessResult,
)
from .verify import verify_contract, verify_deployed_contract

try:
    __version__ = version("forge-deployments")
except PackageNotFoundError:
    __version__ = None

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Deployer",
    "deploy_contract",
    "DeployContext",
    "run_deploy_scripts",
    "ProcessInvoker",
    "ConflictResolver",
    "FailureKind",
    "classify_failure",
    "extract_deploy_output",
    "existing_address",
    "load_deployment",
    "save_deployment",
    "load_network_config",
    "get_network_name",
    "verify_contract",
    "verify_deployed_contract",
    "NetworkConfig",
    "DeployOptions",
    "DeploymentRequest",
    "DeploymentRecord",
    "DeployOutput",
    "ProcessResult",
    "DeploymentError",
    "ExtractionError",
    "ConfigurationError",
    "ArtifactNotFoundError",
    "VerificationError",
    "ScriptNotFoundError",
    "DeployScriptError",
]
