"""Network configuration loading for forge-deployments library."""

import os
import re
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from .constants import DEFAULT_NETWORK
from .exceptions import ConfigurationError
from .types import NetworkConfig


def _env_prefix(network: str) -> str:
    return re.sub(r"[^A-Z0-9]", "_", network.upper())


def _lookup(network: Optional[str], key: str) -> Optional[str]:
    """Read {NETWORK}_{KEY}, falling back to {KEY}."""
    if network:
        value = os.environ.get(f"{_env_prefix(network)}_{key}")
        if value:
            return value
    return os.environ.get(key) or None


def get_network_name(explicit: Optional[str] = None) -> str:
    """
    Decide which network to deploy to.

    Returns:
        The explicit name, else $WEB3_ENV, else "local"
    """
    return explicit or os.environ.get("WEB3_ENV") or DEFAULT_NETWORK


def load_network_config(
    network: Optional[str] = None, env_file: Optional[Union[Path, str]] = None
) -> NetworkConfig:
    """
    Build the connection parameters for a network from the environment.

    Variables already set in the process environment win over the .env file.
    Each value is read from {NETWORK}_{NAME} first (e.g. SEPOLIA_RPC_URL),
    then from the bare name (RPC_URL).

    Args:
        network: Network name (defaults to get_network_name())
        env_file: .env file to load (defaults to ./.env if present)

    Returns:
        NetworkConfig

    Raises:
        ConfigurationError: If RPC_URL, PRIVATE_KEY or ADDRESS is missing,
            or CHAIN_ID is not an integer
    """
    network = get_network_name(network)

    if env_file is None:
        env_file = Path.cwd() / ".env"
    load_dotenv(env_file, override=False)

    rpc_url = _lookup(network, "RPC_URL")
    private_key = _lookup(network, "PRIVATE_KEY")
    address = _lookup(network, "ADDRESS")
    chain_id_text = _lookup(network, "CHAIN_ID")

    missing = [
        name
        for name, value in (("RPC_URL", rpc_url), ("PRIVATE_KEY", private_key), ("ADDRESS", address))
        if not value
    ]
    if missing:
        raise ConfigurationError(
            f"Missing configuration for network '{network}': {', '.join(missing)}. "
            f"Set {_env_prefix(network)}_<NAME> or <NAME> in the environment or .env file",
            network=network,
        )

    chain_id = None
    if chain_id_text:
        try:
            chain_id = int(chain_id_text, 0)
        except ValueError as e:
            raise ConfigurationError(
                f"CHAIN_ID for network '{network}' is not an integer: {chain_id_text!r}",
                network=network,
            ) from e

    return NetworkConfig(
        rpc_url=rpc_url,
        private_key=private_key,
        address=address,
        chain_id=chain_id,
    )
