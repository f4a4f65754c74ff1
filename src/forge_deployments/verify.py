"""Block-explorer verification for forge-deployments library."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import requests
import toml

from .artifacts import find_artifact_file, load_deployment
from .constants import (
    DEFAULT_COMPILER_VERSION,
    DEFAULT_OPTIMIZER_RUNS,
    EXPLORER_CONFIG,
    FORGE_COMMAND,
)
from .deployments import normalize_constructor_args
from .exceptions import VerificationError
from .invoker import ProcessInvoker
from .paths import get_artifact_dir, get_project_root
from .redaction import redact
from .types import NetworkConfig

logger = logging.getLogger(__name__)


def read_foundry_config(project_root: Optional[Union[Path, str]] = None) -> Dict[str, Any]:
    """
    Read compiler settings from foundry.toml.

    Verification must use the same compiler version and optimizer runs as
    compilation did.

    Returns:
        {"compiler_version": str, "optimizer_runs": int}, defaults filled in
    """
    config: Dict[str, Any] = {
        "compiler_version": DEFAULT_COMPILER_VERSION,
        "optimizer_runs": DEFAULT_OPTIMIZER_RUNS,
    }

    foundry_toml = get_project_root(project_root) / "foundry.toml"
    try:
        data = toml.load(foundry_toml)
    except (FileNotFoundError, toml.TomlDecodeError):
        return config

    profile = data.get("profile", {}).get("default", {})
    solc_version = profile.get("solc_version") or profile.get("solc")
    if solc_version:
        config["compiler_version"] = str(solc_version)
    if "optimizer_runs" in profile:
        config["optimizer_runs"] = int(profile["optimizer_runs"])

    return config


def _explorer(network: str) -> Dict[str, str]:
    if network not in EXPLORER_CONFIG:
        raise VerificationError(
            f"Unsupported network for verification: {network}", network=network
        )
    return EXPLORER_CONFIG[network]


def is_verified(
    address: str, network: str, api_key: str, api_url: Optional[str] = None
) -> bool:
    """
    Ask the block explorer whether a contract's source is already verified.

    Args:
        address: Contract address
        network: Network name (selects the explorer API)
        api_key: Explorer API key
        api_url: Explorer API URL override

    Returns:
        True if the explorer returns source code for the address

    Raises:
        VerificationError: If the explorer cannot be reached or returns an error
    """
    if api_url is None:
        api_url = _explorer(network)["api_url"]

    try:
        response = requests.get(
            api_url,
            params={
                "module": "contract",
                "action": "getsourcecode",
                "address": address,
                "apikey": api_key,
            },
            timeout=30,
        )

        if response.status_code != 200:
            raise VerificationError(
                f"Explorer request failed with status {response.status_code}",
                network=network,
            )

        result = response.json()
    except requests.RequestException as e:
        raise VerificationError(
            f"Network error during explorer request: {redact(str(e))}", network=network
        ) from e

    if str(result.get("status")) != "1":
        raise VerificationError(
            f"Explorer error: {redact(str(result.get('result')))}", network=network
        )

    entries = result.get("result") or []
    return bool(entries and entries[0].get("SourceCode"))


def verify_contract(
    address: str,
    contract_name: str,
    network: str,
    api_key: str,
    rpc_url: str,
    constructor_args: Optional[List[Any]] = None,
    chain_id: Optional[int] = None,
    invoker: Optional[ProcessInvoker] = None,
    project_root: Optional[Union[Path, str]] = None,
    skip_if_verified: bool = False,
) -> bool:
    """
    Verify a deployed contract with `forge verify-contract`.

    Args:
        address: Contract address
        contract_name: Contract name; source path is src/{name}.sol:{name}
        network: Network name (must have a known explorer)
        api_key: Explorer API key
        rpc_url: RPC endpoint
        constructor_args: Constructor arguments as recorded at deployment
        chain_id: Chain id (defaults to 1)
        invoker: Process invoker (defaults to one rooted at project_root)
        project_root: Project directory (defaults to the current directory)
        skip_if_verified: Check the explorer first and do nothing if verified

    Returns:
        True if verification ran, False if skipped because already verified

    Raises:
        VerificationError: If the network is unsupported or forge fails
    """
    explorer = _explorer(network)

    if skip_if_verified and is_verified(address, network, api_key, explorer["api_url"]):
        logger.info("%s at %s is already verified", contract_name, address)
        return False

    foundry_config = read_foundry_config(project_root)
    args = [
        "verify-contract",
        address,
        f"src/{contract_name}.sol:{contract_name}",
        "--chain-id",
        str(chain_id or 1),
        "--etherscan-api-key",
        api_key,
        "--rpc-url",
        rpc_url,
        "--compiler-version",
        foundry_config["compiler_version"],
        "--num-of-optimizations",
        str(foundry_config["optimizer_runs"]),
    ]

    if constructor_args:
        args.append("--constructor-args")
        args.extend(normalize_constructor_args(constructor_args))

    if invoker is None:
        invoker = ProcessInvoker(cwd=project_root)

    result = invoker.run(FORGE_COMMAND, args)
    if not result.success:
        detail = redact(result.stderr.strip())
        raise VerificationError(
            f"Verification of {contract_name} failed: {detail}",
            contract_name=contract_name,
            network=network,
            detail=detail,
        )

    if result.stdout.strip():
        logger.info("%s", redact(result.stdout.strip()))
    logger.info("Contract verified: %s/%s", explorer["explorer_url"], address)
    return True


def verify_deployed_contract(
    contract_name: str,
    network: str,
    config: NetworkConfig,
    api_key: str,
    artifact_dir: Optional[Union[Path, str]] = None,
    invoker: Optional[ProcessInvoker] = None,
    project_root: Optional[Union[Path, str]] = None,
    skip_if_verified: bool = False,
) -> bool:
    """
    Verify a contract using its deployment record.

    The record's on-disk name decides the contract name passed to forge, so a
    script called "token" verifies the "Token" contract.

    Raises:
        ArtifactNotFoundError: If the contract has no deployment record
        VerificationError: If verification fails
    """
    if artifact_dir is None:
        record_dir = get_artifact_dir(network, project_root)
    else:
        record_dir = Path(artifact_dir)

    record_file = find_artifact_file(contract_name, record_dir)
    if record_file is not None:
        contract_name = record_file.stem

    record = load_deployment(contract_name, network, record_dir)
    return verify_contract(
        record.address,
        contract_name,
        network,
        api_key,
        config.rpc_url,
        constructor_args=record.args,
        chain_id=config.chain_id,
        invoker=invoker,
        project_root=project_root,
        skip_if_verified=skip_if_verified,
    )
