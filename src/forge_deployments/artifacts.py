"""Deployment record storage for forge-deployments library."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .constants import ZERO_ADDRESS
from .exceptions import ArtifactNotFoundError, DeploymentError
from .paths import get_artifact_dir, get_compiled_artifact_paths
from .types import DeploymentRecord

logger = logging.getLogger(__name__)


def is_zero_address(address: Optional[str]) -> bool:
    """Return True if address is missing, empty, or the all-zero address."""
    return not address or address.lower() == ZERO_ADDRESS


def read_compiled_abi(
    contract_name: str, project_root: Optional[Union[Path, str]] = None
) -> Optional[List[Dict[str, Any]]]:
    """
    Read a contract's ABI from its compiled artifact.

    Args:
        contract_name: Contract name, e.g. "Token"
        project_root: Project directory (defaults to the current directory)

    Returns:
        ABI entries with forge's "signature" keys stripped,
        or None if no compiled artifact exists
    """
    for artifact_path in get_compiled_artifact_paths(contract_name, project_root):
        if not artifact_path.exists():
            continue

        with open(artifact_path) as f:
            artifact = json.load(f)

        return [
            {key: value for key, value in item.items() if key != "signature"}
            for item in artifact.get("abi") or []
        ]

    return None


def find_artifact_file(contract_name: str, artifact_dir: Path) -> Optional[Path]:
    """
    Find the record file for a contract.

    Deploy scripts and user-supplied names may differ from the file only in
    case, so an exact match is tried first and a case-insensitive one second.

    Returns:
        Path to the record file, or None if nothing matches
    """
    exact = artifact_dir / f"{contract_name}.json"
    if exact.exists():
        return exact

    if not artifact_dir.is_dir():
        return None

    wanted = f"{contract_name}.json".lower()
    for candidate in sorted(artifact_dir.glob("*.json")):
        if candidate.name.lower() == wanted:
            return candidate

    return None


def save_deployment(
    contract_name: str,
    network: str,
    address: str,
    args: Optional[List[Any]] = None,
    artifact_dir: Optional[Union[Path, str]] = None,
    force: bool = False,
    abi: Optional[List[Dict[str, Any]]] = None,
    project_root: Optional[Union[Path, str]] = None,
) -> Optional[Path]:
    """
    Write the deployment record for a contract.

    Args:
        contract_name: Contract name, used as the file name
        network: Network name
        address: Deployed address
        args: Constructor arguments as originally supplied
        artifact_dir: Record directory (defaults to build/abi/{network})
        force: Overwrite an existing record
        abi: ABI to store (defaults to the compiled artifact's ABI)
        project_root: Project directory (defaults to the current directory)

    Returns:
        Path of the written record, or None if an existing record was kept
    """
    if artifact_dir is None:
        record_dir = get_artifact_dir(network, project_root)
    else:
        record_dir = Path(artifact_dir)
    record_path = record_dir / f"{contract_name}.json"

    if record_path.exists() and not force:
        logger.warning(
            "Deployment record %s already exists, keeping it (use force to overwrite)",
            record_path,
        )
        return None

    if abi is None:
        abi = read_compiled_abi(contract_name, project_root)
        if abi is None:
            logger.warning(
                "Compiled artifact for %s not found, record will have an empty ABI",
                contract_name,
            )
            abi = []

    record = {
        "contractName": contract_name,
        "address": address,
        "abi": abi,
        "args": list(args) if args is not None else [],
    }

    record_dir.mkdir(parents=True, exist_ok=True)
    # Write then rename so a crash never leaves a half-written record
    tmp_path = record_path.with_suffix(".json.tmp")
    with open(tmp_path, "w") as f:
        json.dump(record, f, indent=2)
    os.replace(tmp_path, record_path)

    logger.info("Saved %s deployment record to %s", contract_name, record_path)
    return record_path


def load_deployment(
    contract_name: str,
    network: str,
    artifact_dir: Optional[Union[Path, str]] = None,
    project_root: Optional[Union[Path, str]] = None,
) -> DeploymentRecord:
    """
    Read the deployment record for a contract.

    Args:
        contract_name: Contract name (matched case-insensitively if needed)
        network: Network name
        artifact_dir: Record directory (defaults to build/abi/{network})
        project_root: Project directory (defaults to the current directory)

    Returns:
        DeploymentRecord with the contract name as stored in the file

    Raises:
        ArtifactNotFoundError: If no record exists or its address is zero
        DeploymentError: If the record file is not a JSON object
    """
    if artifact_dir is None:
        record_dir = get_artifact_dir(network, project_root)
    else:
        record_dir = Path(artifact_dir)

    record_path = find_artifact_file(contract_name, record_dir)
    if record_path is None:
        raise ArtifactNotFoundError(
            f"{contract_name} has no deployment record on network '{network}'. "
            f"Expected file: {record_dir / f'{contract_name}.json'}",
            contract_name=contract_name,
            network=network,
        )

    try:
        with open(record_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise DeploymentError(
            f"Deployment record {record_path} is not valid JSON: {e}",
            contract_name=contract_name,
            network=network,
        ) from e

    if not isinstance(data, dict):
        raise DeploymentError(
            f"Deployment record {record_path} must contain a JSON object",
            contract_name=contract_name,
            network=network,
        )

    address = data.get("address")
    if is_zero_address(address):
        raise ArtifactNotFoundError(
            f"{contract_name} address is missing or zero in {record_path}",
            contract_name=contract_name,
            network=network,
        )

    return DeploymentRecord(
        contract_name=data.get("contractName") or data.get("name") or contract_name,
        address=address,
        abi=data.get("abi") or [],
        args=data.get("args"),
        path=record_path,
    )


def existing_address(
    contract_name: str,
    network: str,
    artifact_dir: Optional[Union[Path, str]] = None,
    project_root: Optional[Union[Path, str]] = None,
) -> Optional[str]:
    """
    Return the deployed address of a contract, or None if it is not deployed.

    A record holding the zero address counts as not deployed.
    """
    try:
        return load_deployment(contract_name, network, artifact_dir, project_root).address
    except ArtifactNotFoundError:
        return None
