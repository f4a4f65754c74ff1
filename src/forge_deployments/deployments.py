"""Main API for forge-deployments library."""

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from .artifacts import existing_address, save_deployment
from .confirmations import default_confirmations, wait_for_confirmations
from .conflicts import ConflictResolver
from .constants import (
    DEFAULT_CONFIRMATION_TIMEOUT,
    DEFAULT_NETWORK,
    DEFAULT_POLL_INTERVAL,
    FORGE_COMMAND,
)
from .invoker import ProcessInvoker
from .parsers import extract_deploy_output
from .paths import get_artifact_dir, get_project_root
from .redaction import redact
from .types import DeployCommand, DeploymentRequest, DeployOptions, NetworkConfig

logger = logging.getLogger(__name__)

ConstructorArgs = Union[List[Any], Dict[str, Any], None]


def constructor_values(constructor_args: ConstructorArgs) -> List[Any]:
    """
    Constructor arguments as an ordered list.

    A dict contributes its values in insertion order.
    """
    if constructor_args is None:
        return []
    if isinstance(constructor_args, dict):
        return list(constructor_args.values())
    return list(constructor_args)


def format_constructor_arg(value: Any) -> str:
    """Render one constructor argument the way forge expects it on the command line."""
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(format_constructor_arg(item) for item in value) + "]"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def normalize_constructor_args(constructor_args: ConstructorArgs) -> List[str]:
    """
    Convert constructor arguments to forge command-line strings.

    Examples:
        ["Token", "TKN", 18] -> ["Token", "TKN", "18"]
        {"owners": ["0xa", "0xb"], "threshold": 2} -> ["[0xa,0xb]", "2"]
    """
    return [format_constructor_arg(value) for value in constructor_values(constructor_args)]


def build_create_command(
    contract_name: str,
    config: NetworkConfig,
    constructor_args: List[str],
    options: DeployOptions,
    program: str = FORGE_COMMAND,
) -> DeployCommand:
    """
    Build the `forge create` invocation for a deployment.

    Args:
        contract_name: Contract name
        config: Network connection parameters
        constructor_args: Already normalized constructor arguments
        options: Deployment options (contract path override, verification)
        program: Deploy tool executable

    Returns:
        DeployCommand
    """
    contract_path = options.contract_path or f"src/{contract_name}.sol:{contract_name}"
    args = [
        "create",
        contract_path,
        "--rpc-url",
        config.rpc_url,
        "--private-key",
        config.private_key,
        "--json",
        "--broadcast",
    ]

    if constructor_args:
        args.append("--constructor-args")
        args.extend(constructor_args)

    chain_id = options.chain_id or config.chain_id
    if options.verify and options.etherscan_api_key and chain_id:
        args.extend(["--verify", "--etherscan-api-key", options.etherscan_api_key])
        args.extend(["--chain-id", str(chain_id)])

    return DeployCommand(program=program, args=args)


class Deployer:
    """Deploys contracts with forge and records the results."""

    def __init__(
        self,
        invoker: Optional[ProcessInvoker] = None,
        resolver: Optional[ConflictResolver] = None,
        project_root: Optional[Union[Path, str]] = None,
        sleep: Callable[[float], None] = time.sleep,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the deployer.

        Args:
            invoker: Process invoker (defaults to one rooted at project_root)
            resolver: Conflict resolver (defaults to one sharing the invoker)
            project_root: Project directory (defaults to the current directory)
            sleep: Delay function used for retries and confirmation polling
            confirmation_timeout: Default seconds to wait for confirmations
            poll_interval: Seconds between confirmation polls
            clock: Monotonic time source for the confirmation deadline
        """
        self.project_root = get_project_root(project_root)
        self.invoker = invoker or ProcessInvoker(cwd=self.project_root)
        self.resolver = resolver or ConflictResolver(self.invoker, sleep=sleep)
        self.sleep = sleep
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self.clock = clock

    def deploy(self, request: DeploymentRequest) -> str:
        """
        Deploy a contract unless it is already deployed.

        Args:
            request: Contract, network, connection parameters, arguments and options

        Returns:
            Deployed address. Empty string when forge reports the transaction as
            already imported and no address can be recovered; the caller must
            follow up manually in that case.

        Raises:
            DeploymentError: If deployment fails and cannot be recovered
            ExtractionError: If forge succeeded but printed no address
        """
        options = request.options
        name = request.contract_name
        if options.artifact_dir is None:
            artifact_dir = get_artifact_dir(request.network, self.project_root)
        else:
            artifact_dir = Path(options.artifact_dir)

        address = existing_address(name, request.network, artifact_dir)
        if address and not options.force:
            logger.info("%s already deployed on %s at %s", name, request.network, address)
            return address

        if options.force:
            self.invoker.purge_broadcast_history(
                options.chain_id or request.config.chain_id, rpc_url=request.config.rpc_url
            )

        args = normalize_constructor_args(request.constructor_args)
        command = build_create_command(name, request.config, args, options)

        logger.info("Deploying %s to %s", name, request.network)
        result = self.invoker.run(command.program, command.args)

        if not result.success:
            resolution = self.resolver.resolve(result, command, request, artifact_dir)
            if resolution.soft:
                if resolution.address:
                    self._save(request, resolution.address, artifact_dir)
                return resolution.address
            result = resolution.result

        output = extract_deploy_output(result.stdout, result.stderr)

        required = options.confirmations
        if required is None:
            required = default_confirmations(request.network, request.config.rpc_url)

        if output.tx_hash and required > 0:
            timeout = options.confirmation_timeout
            if timeout is None:
                timeout = self.confirmation_timeout
            wait_for_confirmations(
                output.tx_hash,
                request.config.rpc_url,
                required,
                self.invoker,
                timeout=timeout,
                poll_interval=self.poll_interval,
                sleep=self.sleep,
                clock=self.clock,
            )

        self._save(request, output.address, artifact_dir)

        logger.info("%s deployed to %s", name, output.address)
        if output.tx_hash:
            logger.info("Transaction hash: %s", redact(output.tx_hash))

        return output.address

    def _save(self, request: DeploymentRequest, address: str, artifact_dir: Path) -> None:
        # No live record exists at this point (or force was given), so overwrite
        save_deployment(
            request.contract_name,
            request.network,
            address,
            args=constructor_values(request.constructor_args),
            artifact_dir=artifact_dir,
            force=True,
            project_root=self.project_root,
        )


def deploy_contract(
    contract_name: str,
    config: NetworkConfig,
    constructor_args: ConstructorArgs = None,
    network: str = DEFAULT_NETWORK,
    project_root: Optional[Union[Path, str]] = None,
    **options: Any,
) -> str:
    """
    Deploy a single contract with a default Deployer.

    Args:
        contract_name: Contract name, e.g. "Token"
        config: Network connection parameters
        constructor_args: List, or dict whose values are used in order
        network: Network name
        project_root: Project directory (defaults to the current directory)
        **options: DeployOptions fields (force, confirmations, contract_path, ...)

    Returns:
        Deployed address
    """
    request = DeploymentRequest(
        contract_name=contract_name,
        network=network,
        config=config,
        constructor_args=constructor_args if constructor_args is not None else [],
        options=DeployOptions(**options),
    )
    return Deployer(project_root=project_root).deploy(request)
