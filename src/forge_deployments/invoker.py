"""Subprocess execution boundary for forge-deployments library."""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from .constants import CAST_COMMAND
from .paths import get_broadcast_dirs, get_project_root
from .redaction import redact, redact_command
from .types import ProcessResult

logger = logging.getLogger(__name__)


def _parse_int(text: str) -> Optional[int]:
    """Parse a decimal or 0x-prefixed integer printed by cast."""
    value = text.strip().split()[0] if text.strip() else ""
    try:
        return int(value, 0)
    except ValueError:
        return None


class ProcessInvoker:
    """
    Runs the deploy toolchain.

    run() performs no retries and does not interpret output. The probe helpers
    return None on any failure since they only feed retry and wait loops.
    """

    def __init__(
        self,
        cwd: Optional[Union[Path, str]] = None,
        timeout: Optional[float] = None,
        cast_command: str = CAST_COMMAND,
    ):
        """
        Args:
            cwd: Working directory for every command (defaults to the current directory)
            timeout: Seconds before a command is killed (None waits indefinitely)
            cast_command: Executable used for chain probes
        """
        self.cwd = get_project_root(cwd)
        self.timeout = timeout
        self.cast_command = cast_command

    def run(self, command: str, args: Sequence[str]) -> ProcessResult:
        """
        Run a command and capture its output.

        A missing executable or a timeout is reported as a failed result.
        """
        logger.debug("Running: %s", redact_command(command, args))
        try:
            completed = subprocess.run(
                [command, *args],
                capture_output=True,
                text=True,
                cwd=str(self.cwd),
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            return ProcessResult(stdout="", stderr=f"{command}: {e}", success=False)
        except subprocess.TimeoutExpired as e:
            return ProcessResult(
                stdout=e.stdout if isinstance(e.stdout, str) else "",
                stderr=f"{command} timed out after {self.timeout} seconds",
                success=False,
            )

        logger.debug("%s exited with %s", command, completed.returncode)
        if completed.returncode != 0:
            logger.debug("stderr: %s", redact(completed.stderr))

        return ProcessResult(
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            success=completed.returncode == 0,
            returncode=completed.returncode,
        )

    def _probe(self, args: List[str]) -> Optional[int]:
        result = self.run(self.cast_command, args)
        if not result.success:
            return None
        return _parse_int(result.stdout)

    def current_gas_price(self, rpc_url: str) -> Optional[int]:
        """Current gas price in wei, or None."""
        return self._probe(["gas-price", "--rpc-url", rpc_url])

    def chain_id(self, rpc_url: str) -> Optional[int]:
        """Chain id reported by the RPC endpoint, or None."""
        return self._probe(["chain-id", "--rpc-url", rpc_url])

    def block_number(self, rpc_url: str) -> Optional[int]:
        """Current chain head, or None."""
        return self._probe(["block-number", "--rpc-url", rpc_url])

    def transaction_receipt(self, tx_hash: str, rpc_url: str) -> Optional[Dict[str, int]]:
        """
        Block number of a mined transaction.

        Returns:
            {"blockNumber": n}, or None if the transaction is not mined yet
            or the query failed
        """
        # --async returns at once instead of waiting for the transaction to be mined
        block = self._probe(
            ["receipt", tx_hash, "blockNumber", "--async", "--rpc-url", rpc_url]
        )
        if block is None:
            return None
        return {"blockNumber": block}

    def purge_broadcast_history(
        self, chain_id: Optional[int] = None, rpc_url: Optional[str] = None
    ) -> List[Path]:
        """
        Delete forge's locally cached broadcast history for one chain.

        Removes broadcast/<script>/<chain_id> and cache/<script>/<chain_id>
        under the working directory. Without a chain id it is asked from
        rpc_url; if that fails nothing is removed, so other networks'
        history is never touched.

        Args:
            chain_id: Chain whose history is removed
            rpc_url: RPC endpoint used to look up a missing chain id

        Returns:
            Removed directories
        """
        if chain_id is None and rpc_url:
            chain_id = self.chain_id(rpc_url)
        if chain_id is None:
            logger.warning("Chain id unknown, skipping broadcast history purge")
            return []

        removed: List[Path] = []
        for base in get_broadcast_dirs(self.cwd):
            if not base.is_dir():
                continue
            for script_dir in base.iterdir():
                if not script_dir.is_dir():
                    continue
                chain_dir = script_dir / str(chain_id)
                if chain_dir.is_dir():
                    shutil.rmtree(chain_dir)
                    removed.append(chain_dir)

        if removed:
            logger.warning(
                "Purged %d broadcast history directories for chain %d", len(removed), chain_id
            )
        return removed
