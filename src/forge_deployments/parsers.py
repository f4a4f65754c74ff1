"""Deploy output parsers for forge-deployments library."""

import json
import re
from typing import Any, Callable, List, Optional, Tuple

from .exceptions import ExtractionError
from .redaction import redact
from .types import DeployOutput

# Field paths, in priority order
ADDRESS_FIELDS: List[Tuple[str, ...]] = [
    ("deployedTo",),
    ("address",),
    ("contractAddress",),
]
TX_HASH_FIELDS: List[Tuple[str, ...]] = [
    ("transaction", "hash"),
    ("hash",),
    ("receipt", "transactionHash"),
    ("transactionHash",),
]

ADDRESS_PATTERNS = [
    re.compile(r"Deployed to:\s*(0x[a-fA-F0-9]{40})", re.IGNORECASE),
    re.compile(r"Contract Address:\s*(0x[a-fA-F0-9]{40})", re.IGNORECASE),
    re.compile(r"deployed at:?\s*(0x[a-fA-F0-9]{40})", re.IGNORECASE),
]
# Least specific last
TX_HASH_PATTERNS = [
    re.compile(r"transaction hash:\s*(0x[a-fA-F0-9]{64})", re.IGNORECASE),
    re.compile(r"hash:\s*(0x[a-fA-F0-9]{64})", re.IGNORECASE),
    re.compile(r"(0x[a-fA-F0-9]{64})"),
]


def _lookup(data: Any, path: Tuple[str, ...]) -> Optional[str]:
    for key in path:
        if not isinstance(data, dict) or key not in data:
            return None
        data = data[key]
    if isinstance(data, str) and data:
        return data
    return None


def _first_field(data: Any, paths: List[Tuple[str, ...]]) -> Optional[str]:
    for path in paths:
        value = _lookup(data, path)
        if value is not None:
            return value
    return None


def _first_match(text: str, patterns: List[re.Pattern]) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def _load_json(stdout: str) -> Any:
    """
    Decode forge's --json output.

    The whole stdout is tried first; some forge versions print progress lines
    before the JSON document, so the last line that looks like an object is
    tried next.
    """
    try:
        return json.loads(stdout)
    except ValueError:
        pass

    for line in reversed(stdout.strip().splitlines()):
        line = line.strip()
        if line.startswith("{") and line.endswith("}"):
            try:
                return json.loads(line)
            except ValueError:
                continue
    return None


def parse_json_output(stdout: str) -> Optional[DeployOutput]:
    """
    Parse machine-readable deploy output.

    Returns:
        DeployOutput if the JSON carries an address, otherwise None
    """
    data = _load_json(stdout)
    if not isinstance(data, dict):
        return None

    address = _first_field(data, ADDRESS_FIELDS)
    if address is None:
        return None

    return DeployOutput(address=address, tx_hash=_first_field(data, TX_HASH_FIELDS))


def parse_text_output(text: str) -> Optional[DeployOutput]:
    """
    Parse human-readable deploy output.

    Returns:
        DeployOutput if an address pattern matches, otherwise None
    """
    address = _first_match(text, ADDRESS_PATTERNS)
    if address is None:
        return None
    return DeployOutput(address=address, tx_hash=find_tx_hash(text))


def find_tx_hash(text: str) -> Optional[str]:
    """Find a transaction hash anywhere in text."""
    return _first_match(text, TX_HASH_PATTERNS)


def find_address(text: str) -> Optional[str]:
    """Find a labelled contract address anywhere in text."""
    return _first_match(text, ADDRESS_PATTERNS)


def extract_deploy_output(stdout: str, stderr: str = "") -> DeployOutput:
    """
    Extract the deployed address and transaction hash from deploy output.

    Parsers are tried in order and the first one that finds an address wins:
    JSON on stdout, then regex patterns over stderr + stdout. When the winning
    parser has no transaction hash, the hash is searched for independently.

    Args:
        stdout: Captured standard output
        stderr: Captured standard error

    Returns:
        DeployOutput

    Raises:
        ExtractionError: If no parser finds an address
    """
    combined = stderr + stdout
    parsers: List[Callable[[], Optional[DeployOutput]]] = [
        lambda: parse_json_output(stdout),
        lambda: parse_text_output(combined),
    ]

    for parser in parsers:
        output = parser()
        if output is not None:
            if output.tx_hash is None:
                output.tx_hash = find_tx_hash(combined)
            return output

    raise ExtractionError(
        "Could not extract contract address from deploy output",
        detail=redact(combined.strip()),
    )
