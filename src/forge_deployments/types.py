"""Data types and dataclasses for forge-deployments library."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


@dataclass
class NetworkConfig:
    """Connection parameters for one network."""

    rpc_url: str
    private_key: str
    address: str  # Deployer account address
    chain_id: Optional[int] = None


@dataclass
class DeployOptions:
    """Per-deployment options."""

    force: bool = False
    confirmations: Optional[int] = None  # None: 0 on local networks, else 2
    contract_path: Optional[str] = None  # e.g. "lib/x/src/Pair.sol:Pair"
    artifact_dir: Optional[Path] = None  # Defaults to build/abi/{network}
    confirmation_timeout: Optional[float] = None

    # Verify during `forge create`
    verify: bool = False
    etherscan_api_key: Optional[str] = None
    chain_id: Optional[int] = None


@dataclass
class DeploymentRequest:
    """Inputs to one deployment attempt."""

    contract_name: str
    network: str
    config: NetworkConfig
    constructor_args: Union[List[Any], Dict[str, Any]] = field(default_factory=list)
    options: DeployOptions = field(default_factory=DeployOptions)


@dataclass
class DeploymentRecord:
    """A persisted deployment, one per (contract, network)."""

    contract_name: str
    address: str
    abi: List[Dict[str, Any]]
    args: Optional[List[Any]] = None
    path: Optional[Path] = None  # File the record was read from


@dataclass
class ProcessResult:
    """Captured output of one subprocess invocation."""

    stdout: str
    stderr: str
    success: bool
    returncode: Optional[int] = None

    @property
    def output(self) -> str:
        """Combined stderr + stdout, the order the text fallbacks scan it in."""
        return self.stderr + self.stdout


@dataclass
class DeployOutput:
    """Address and transaction hash extracted from deploy output."""

    address: str
    tx_hash: Optional[str] = None


@dataclass
class RetryAttempt:
    """State of one retry inside the conflict resolver."""

    index: int  # 1-based
    failure: str  # Redacted text of the failure that triggered this attempt
    gas_multiplier: Optional[float] = None
    gas_price: Optional[int] = None
    delay: Optional[float] = None


@dataclass
class Resolution:
    """
    Outcome of conflict resolution.

    Either ``result`` holds the successful ProcessResult of a retry, or the
    outcome is soft: ``address`` holds whatever address could be recovered,
    possibly the empty string.
    """

    result: Optional[ProcessResult] = None
    soft: bool = False
    address: str = ""
    attempts: List[RetryAttempt] = field(default_factory=list)


@dataclass
class ConfirmationWaitState:
    """State of one confirmation wait."""

    tx_hash: str
    confirmations: int
    started_at: float
    poll_interval: float
    deadline: float
    receipt_block: Optional[int] = None
    observed: int = 0


@dataclass
class DeployCommand:
    """A deploy tool invocation that retries can re-issue."""

    program: str
    args: List[str]

    def with_gas_price(self, gas_price: int) -> List[str]:
        """Arguments with an explicit --gas-price, replacing any existing one."""
        args: List[str] = []
        skip = False
        for arg in self.args:
            if skip:
                skip = False
                continue
            if arg == "--gas-price":
                skip = True
                continue
            args.append(arg)
        return [*args, "--gas-price", str(gas_price)]
