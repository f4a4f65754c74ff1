"""Shared pytest fixtures for forge-deployments tests."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from forge_deployments.types import NetworkConfig, ProcessResult

TOKEN_ADDRESS = "0xabc0000000000000000000000000000000000123"
OTHER_ADDRESS = "0xdef0000000000000000000000000000000000456"
TX_HASH = "0x" + "ab" * 32
PRIVATE_KEY = "0x" + "11" * 32

TOKEN_ABI = [
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {"type": "event", "name": "Transfer", "inputs": [], "anonymous": False},
]


def ok(stdout: str = "", stderr: str = "") -> ProcessResult:
    """A successful ProcessResult."""
    return ProcessResult(stdout=stdout, stderr=stderr, success=True, returncode=0)


def failed(stderr: str, stdout: str = "") -> ProcessResult:
    """A failed ProcessResult."""
    return ProcessResult(stdout=stdout, stderr=stderr, success=False, returncode=1)


def deployed_json(address: str = TOKEN_ADDRESS, tx_hash: str = TX_HASH) -> str:
    """forge create --json output."""
    return json.dumps({"deployer": "0x1", "deployedTo": address, "transactionHash": tx_hash})


class FakeInvoker:
    """
    Stand-in for ProcessInvoker.

    run() returns the scripted results in order and records every call.
    Probe helpers return the configured values.
    """

    def __init__(
        self,
        results: Optional[Sequence[ProcessResult]] = None,
        gas_price: Optional[int] = 20_000_000_000,
        receipts: Optional[List[Optional[int]]] = None,
        heads: Optional[List[Optional[int]]] = None,
    ):
        self.results = list(results or [])
        self.gas_price = gas_price
        self.receipts = list(receipts or [])
        self.heads = list(heads or [])
        self.calls: List[Tuple[str, List[str]]] = []
        self.purges: List[Optional[int]] = []

    def run(self, command: str, args: Sequence[str]) -> ProcessResult:
        self.calls.append((command, list(args)))
        if not self.results:
            raise AssertionError(f"Unexpected invocation: {command} {list(args)}")
        return self.results.pop(0)

    def current_gas_price(self, rpc_url: str) -> Optional[int]:
        return self.gas_price

    @staticmethod
    def _next(values: List[Optional[int]]) -> Optional[int]:
        # The last scripted value repeats forever
        if len(values) > 1:
            return values.pop(0)
        return values[0] if values else None

    def block_number(self, rpc_url: str) -> Optional[int]:
        return self._next(self.heads)

    def transaction_receipt(self, tx_hash: str, rpc_url: str) -> Optional[Dict[str, int]]:
        block = self._next(self.receipts)
        if block is None:
            return None
        return {"blockNumber": block}

    def purge_broadcast_history(
        self, chain_id: Optional[int] = None, rpc_url: Optional[str] = None
    ) -> List[Path]:
        self.purges.append(chain_id)
        return []

    def gas_prices_used(self) -> List[int]:
        """--gas-price values passed to each recorded call, in order."""
        prices = []
        for _, args in self.calls:
            if "--gas-price" in args:
                prices.append(int(args[args.index("--gas-price") + 1]))
        return prices


class FakeClock:
    """Monotonic clock that only advances when sleep() is called."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Empty project directory."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def artifact_dir(project_root: Path) -> Path:
    """Record directory for the local network (not created)."""
    return project_root / "build" / "abi" / "local"


@pytest.fixture
def compiled_token(project_root: Path) -> Path:
    """Compiled Token artifact at build/out/Token.sol/Token.json."""
    out_dir = project_root / "build" / "out" / "Token.sol"
    out_dir.mkdir(parents=True)
    artifact_path = out_dir / "Token.json"
    abi = [dict(item, signature="0x70a08231") for item in TOKEN_ABI]
    artifact_path.write_text(json.dumps({"abi": abi, "bytecode": {"object": "0x6080"}}))
    return artifact_path


@pytest.fixture
def local_config() -> NetworkConfig:
    return NetworkConfig(
        rpc_url="http://127.0.0.1:8545",
        private_key=PRIVATE_KEY,
        address="0x1000000000000000000000000000000000000001",
        chain_id=31337,
    )


@pytest.fixture
def sepolia_config() -> NetworkConfig:
    return NetworkConfig(
        rpc_url="https://rpc.sepolia.example.org",
        private_key=PRIVATE_KEY,
        address="0x1000000000000000000000000000000000000001",
        chain_id=11155111,
    )


def write_record(artifact_dir: Path, name: str, address: str, **extra: Any) -> Path:
    """Write a deployment record file directly."""
    artifact_dir.mkdir(parents=True, exist_ok=True)
    path = artifact_dir / f"{name}.json"
    data = {"contractName": name, "address": address, "abi": [], "args": []}
    data.update(extra)
    path.write_text(json.dumps(data, indent=2))
    return path
