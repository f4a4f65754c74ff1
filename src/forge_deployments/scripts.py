"""Numbered deploy script execution for forge-deployments library."""

import importlib.util
import logging
import re
import time
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, List, Optional, Union

from .artifacts import load_deployment
from .constants import SCRIPT_PAUSE
from .deployments import ConstructorArgs, Deployer
from .exceptions import DeploymentError, DeployScriptError, ScriptNotFoundError
from .paths import get_artifact_dir
from .types import DeploymentRecord, DeploymentRequest, DeployOptions, NetworkConfig
from .verify import verify_deployed_contract

logger = logging.getLogger(__name__)

_SCRIPT_NAME = re.compile(r"^(\d+)-(.+)\.py$")


def _script_order(script: Path) -> int:
    match = _SCRIPT_NAME.match(script.name)
    return int(match.group(1)) if match else 999


def scan_deploy_scripts(script_dir: Union[Path, str]) -> List[Path]:
    """
    Find deploy scripts in a directory.

    Deploy scripts are Python files named "<number>-<name>.py", e.g.
    "1-token.py", and run in ascending numeric order.

    Raises:
        ScriptNotFoundError: If the directory does not exist
    """
    script_dir = Path(script_dir)
    if not script_dir.is_dir():
        raise ScriptNotFoundError(f"Script directory not found: {script_dir}")

    scripts = [
        entry
        for entry in script_dir.iterdir()
        if entry.is_file() and _SCRIPT_NAME.match(entry.name)
    ]
    return sorted(scripts, key=lambda script: (_script_order(script), script.name))


def script_contract_name(script: Path) -> str:
    """Contract name a script deploys: "2-hash.py" -> "hash"."""
    match = _SCRIPT_NAME.match(script.name)
    return match.group(2) if match else script.stem


def find_contract_script(contract_name: str, scripts: List[Path]) -> Optional[Path]:
    """
    Find the deploy script for a contract.

    Matching is case-insensitive: exact name, then name with dashes removed,
    then either name containing the other.
    """
    wanted = contract_name.lower().strip()
    wanted_no_dash = wanted.replace("-", "")

    for script in scripts:
        if not _SCRIPT_NAME.match(script.name):
            continue
        name = script_contract_name(script).lower()

        if name == wanted:
            return script
        if name.replace("-", "") == wanted_no_dash:
            return script
        if name in wanted or wanted in name:
            return script

    return None


class DeployContext:
    """
    Handle passed to each deploy script's deploy() function.

    Scripts call context.deploy("Token", ["Token", "TKN"]) and read earlier
    deployments with context.load_contract("Token").
    """

    def __init__(
        self,
        network: str,
        config: NetworkConfig,
        deployer: Deployer,
        force: bool = False,
        confirmations: Optional[int] = None,
    ):
        self.network = network
        self.config = config
        self.deployer = deployer
        self.force = force
        self.confirmations = confirmations
        # accounts[0] is the deployer address
        self.accounts = [config.address]
        self.logger = logging.getLogger(f"{__name__}.{network}")

    @property
    def artifact_dir(self) -> Path:
        return get_artifact_dir(self.network, self.deployer.project_root)

    def deploy(
        self, contract_name: str, constructor_args: ConstructorArgs = None, **options: Any
    ) -> str:
        """Deploy a contract on this context's network; returns its address."""
        options.setdefault("force", self.force)
        options.setdefault("confirmations", self.confirmations)
        options.setdefault("artifact_dir", self.artifact_dir)
        request = DeploymentRequest(
            contract_name=contract_name,
            network=self.network,
            config=self.config,
            constructor_args=constructor_args if constructor_args is not None else [],
            options=DeployOptions(**options),
        )
        return self.deployer.deploy(request)

    def load_contract(self, contract_name: str) -> DeploymentRecord:
        """Deployment record of a contract on this context's network."""
        return load_deployment(contract_name, self.network, self.artifact_dir)


def _load_script(script: Path) -> ModuleType:
    spec = importlib.util.spec_from_file_location(f"deploy_script_{script.stem}", script)
    if spec is None or spec.loader is None:
        raise DeployScriptError(f"Cannot load deploy script: {script}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _select_scripts(scripts: List[Path], contracts: List[str]) -> List[Path]:
    selected: List[Path] = []
    not_found: List[str] = []

    for contract in contracts:
        script = find_contract_script(contract, scripts)
        if script is None:
            not_found.append(contract)
        elif script not in selected:
            selected.append(script)

    if not_found:
        raise DeployScriptError(f"Contracts not found: {', '.join(not_found)}")

    return sorted(selected, key=lambda script: (_script_order(script), script.name))


def run_deploy_scripts(
    script_dir: Union[Path, str],
    network: str,
    config: NetworkConfig,
    force: bool = False,
    contracts: Optional[List[str]] = None,
    confirmations: Optional[int] = None,
    verify: bool = False,
    api_key: Optional[str] = None,
    deployer: Optional[Deployer] = None,
    pause: float = SCRIPT_PAUSE,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Path]:
    """
    Run deploy scripts one at a time, in numeric order.

    Args:
        script_dir: Directory of numbered deploy scripts
        network: Network name
        config: Network connection parameters
        force: Redeploy contracts that already have records
        contracts: Only run the scripts for these contracts
        confirmations: Confirmations to wait for (defaults per network)
        verify: Verify each contract after its script succeeds
        api_key: Explorer API key, required for verification
        deployer: Deployer to use (defaults to one rooted at the current directory)
        pause: Seconds to wait between scripts
        sleep: Delay function

    Returns:
        Scripts that were executed

    Raises:
        DeployScriptError: If no scripts exist or requested contracts have none
        DeploymentError: If a script's deployment fails; later scripts do not run
    """
    scripts = scan_deploy_scripts(script_dir)
    if not scripts:
        raise DeployScriptError(f"No deploy scripts found in {script_dir}")

    if contracts:
        scripts = _select_scripts(scripts, contracts)

    if deployer is None:
        deployer = Deployer(sleep=sleep)
    context = DeployContext(network, config, deployer, force=force, confirmations=confirmations)

    executed: List[Path] = []
    for index, script in enumerate(scripts, start=1):
        logger.info("[%d/%d] Executing: %s", index, len(scripts), script.name)

        module = _load_script(script)
        deploy_fn = getattr(module, "deploy", None)
        if not callable(deploy_fn):
            logger.error("%s does not define a deploy function, skipping", script.name)
            continue

        try:
            deploy_fn(context)
        except Exception:
            logger.error("Error executing %s", script.name)
            raise
        executed.append(script)
        logger.info("%s completed successfully", script.name)

        if verify and api_key:
            _verify_script_contract(script, network, config, api_key, context)

        if index < len(scripts):
            sleep(pause)

    return executed


def _verify_script_contract(
    script: Path, network: str, config: NetworkConfig, api_key: str, context: DeployContext
) -> None:
    # A failed verification never stops the deployment run
    contract_name = script_contract_name(script)
    contract_name = contract_name[:1].upper() + contract_name[1:]
    logger.info("Verifying %s", contract_name)
    try:
        verify_deployed_contract(
            contract_name,
            network,
            config,
            api_key,
            artifact_dir=context.artifact_dir,
            invoker=context.deployer.invoker,
            project_root=context.deployer.project_root,
        )
    except DeploymentError as e:
        logger.error("Verification of %s failed: %s", contract_name, e)
