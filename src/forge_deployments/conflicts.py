"""Failure classification and retry strategies for forge-deployments library."""

import logging
import re
import time
from decimal import ROUND_CEILING, Decimal
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Sequence

from .artifacts import existing_address
from .constants import (
    GAS_PRICE_MULTIPLIERS,
    MEMPOOL_RETRY_DELAY,
    STALE_HISTORY_BASE_DELAY,
    STALE_HISTORY_MAX_RETRIES,
)
from .exceptions import DeploymentError
from .invoker import ProcessInvoker
from .parsers import find_address
from .redaction import redact
from .types import DeployCommand, DeploymentRequest, ProcessResult, Resolution, RetryAttempt

logger = logging.getLogger(__name__)


class FailureKind(Enum):
    """
    Categories of deploy command failure.

    - MEMPOOL_CONFLICT: node already holds a pending transaction with the same
      identity; recovered by re-sending with a higher gas price
    - STALE_HISTORY: forge refuses to resubmit a transaction from its local
      broadcast history; recovered by purging the history and retrying
    - TRANSIENT_NETWORK: connectivity problem talking to the RPC endpoint
    - FATAL: anything else
    """

    MEMPOOL_CONFLICT = "mempool-conflict"
    STALE_HISTORY = "stale-history"
    TRANSIENT_NETWORK = "transient-network"
    FATAL = "fatal"


# Checked in insertion order; first matching kind wins
FAILURE_PATTERNS: Dict[FailureKind, List[re.Pattern]] = {
    FailureKind.MEMPOOL_CONFLICT: [
        re.compile(r"already known", re.IGNORECASE),
        re.compile(r"replacement transaction underpriced", re.IGNORECASE),
        re.compile(r"code:?\s*-32000\b.*\bknown transaction", re.IGNORECASE),
    ],
    FailureKind.STALE_HISTORY: [
        re.compile(r"already imported", re.IGNORECASE),
        re.compile(r"AlreadyImported", re.IGNORECASE),
        re.compile(r"known transaction", re.IGNORECASE),
    ],
    FailureKind.TRANSIENT_NETWORK: [
        re.compile(r"connection (?:reset|refused|closed|aborted)", re.IGNORECASE),
        re.compile(r"error sending request", re.IGNORECASE),
        re.compile(r"\b(?:tls|ssl)\b", re.IGNORECASE),
        re.compile(r"timed? ?out", re.IGNORECASE),
        re.compile(r"broken pipe", re.IGNORECASE),
        re.compile(r"unexpected eof", re.IGNORECASE),
        re.compile(r"temporarily unavailable", re.IGNORECASE),
        re.compile(r"\b(?:502|503|504)\b|bad gateway|service unavailable", re.IGNORECASE),
    ],
}


def classify_failure(text: str) -> FailureKind:
    """
    Classify deploy tool error output.

    Args:
        text: Captured standard error of the failed command

    Returns:
        The first FailureKind whose patterns match, FailureKind.FATAL otherwise
    """
    for kind, patterns in FAILURE_PATTERNS.items():
        if any(pattern.search(text) for pattern in patterns):
            return kind
    return FailureKind.FATAL


def bump_gas_price(gas_price: int, multiplier: float) -> int:
    """Return ceil(gas_price * multiplier) without float rounding error."""
    bumped = Decimal(gas_price) * Decimal(str(multiplier))
    return int(bumped.to_integral_value(rounding=ROUND_CEILING))


def gas_price_ladder(gas_price: int, multipliers: Sequence[float]) -> List[int]:
    """
    Gas prices for successive mempool-conflict retries.

    Each price is strictly greater than the one before it, even when
    rounding (or a zero base price) would make two steps equal.
    """
    ladder: List[int] = []
    for multiplier in multipliers:
        price = bump_gas_price(gas_price, multiplier)
        if ladder and price <= ladder[-1]:
            price = ladder[-1] + 1
        ladder.append(max(price, 1))
    return ladder


class ConflictResolver:
    """
    Recovers from deploy failures that are known to be transient.

    Each failure is classified once; the classified kind selects a bounded
    retry strategy. Anything outside the known transient kinds is raised as
    DeploymentError straight away.
    """

    def __init__(
        self,
        invoker: ProcessInvoker,
        sleep: Callable[[float], None] = time.sleep,
        gas_multipliers: Sequence[float] = GAS_PRICE_MULTIPLIERS,
        mempool_retry_delay: float = MEMPOOL_RETRY_DELAY,
        stale_max_retries: int = STALE_HISTORY_MAX_RETRIES,
        stale_base_delay: float = STALE_HISTORY_BASE_DELAY,
    ):
        self.invoker = invoker
        self.sleep = sleep
        self.gas_multipliers = tuple(gas_multipliers)
        self.mempool_retry_delay = mempool_retry_delay
        self.stale_max_retries = stale_max_retries
        self.stale_base_delay = stale_base_delay

    def resolve(
        self,
        failure: ProcessResult,
        command: DeployCommand,
        request: DeploymentRequest,
        artifact_dir: Path,
    ) -> Resolution:
        """
        Recover from a failed first deploy attempt.

        Args:
            failure: Result of the failed first attempt
            command: The command that failed, re-issued by retries
            request: The deployment being attempted
            artifact_dir: Record directory, searched on the soft path

        Returns:
            Resolution holding either a successful retry result or a soft outcome

        Raises:
            DeploymentError: If the failure is fatal or the retry budget runs out
        """
        kind = classify_failure(failure.stderr)
        logger.debug("Deploy of %s failed, classified as %s", request.contract_name, kind.value)

        match kind:
            case FailureKind.MEMPOOL_CONFLICT:
                return self._retry_with_gas_bump(failure, command, request)
            case FailureKind.STALE_HISTORY if request.options.force:
                return self._retry_after_purge(failure, command, request)
            case FailureKind.STALE_HISTORY:
                return self._soft_outcome(failure, request, artifact_dir)
            case FailureKind.TRANSIENT_NETWORK | FailureKind.FATAL:
                raise self._fatal(request, failure.stderr, "Deployment failed")
            case _:
                # Unreachable but exhaustive
                raise self._fatal(request, failure.stderr, "Deployment failed")

    def _fatal(self, request: DeploymentRequest, text: str, reason: str) -> DeploymentError:
        detail = redact(text.strip())
        return DeploymentError(
            f"{reason}: {request.contract_name} on network '{request.network}': {detail}",
            contract_name=request.contract_name,
            network=request.network,
            detail=detail,
        )

    def _retry_with_gas_bump(
        self, failure: ProcessResult, command: DeployCommand, request: DeploymentRequest
    ) -> Resolution:
        gas_price = self.invoker.current_gas_price(request.config.rpc_url)
        if gas_price is None:
            raise self._fatal(
                request,
                failure.stderr,
                "Mempool conflict and current gas price is unavailable",
            )

        ladder = gas_price_ladder(gas_price, self.gas_multipliers)
        budget = len(ladder)
        attempts: List[RetryAttempt] = []
        last_failure = failure.stderr
        step = 0

        for index in range(1, budget + 1):
            attempt = RetryAttempt(
                index=index,
                failure=redact(last_failure),
                gas_multiplier=self.gas_multipliers[step],
                gas_price=ladder[step],
                delay=self.mempool_retry_delay,
            )
            attempts.append(attempt)
            logger.info(
                "Mempool conflict deploying %s, retry %d/%d with gas price %d (%sx of %d)",
                request.contract_name,
                index,
                budget,
                attempt.gas_price,
                attempt.gas_multiplier,
                gas_price,
            )
            self.sleep(self.mempool_retry_delay)

            result = self.invoker.run(command.program, command.with_gas_price(attempt.gas_price))
            if result.success:
                return Resolution(result=result, attempts=attempts)

            last_failure = result.stderr
            match classify_failure(result.stderr):
                case FailureKind.MEMPOOL_CONFLICT:
                    step += 1
                case FailureKind.TRANSIENT_NETWORK:
                    logger.warning(
                        "Transient network error on retry %d for %s, keeping gas price %d",
                        index,
                        request.contract_name,
                        attempt.gas_price,
                    )
                case _:
                    raise self._fatal(request, result.stderr, "Gas-bump retry failed")

        raise self._fatal(
            request, last_failure, f"Mempool conflict persisted after {budget} gas-bump retries"
        )

    def _retry_after_purge(
        self, failure: ProcessResult, command: DeployCommand, request: DeploymentRequest
    ) -> Resolution:
        chain_id = request.options.chain_id or request.config.chain_id
        attempts: List[RetryAttempt] = []
        last_failure = failure.stderr

        for index in range(1, self.stale_max_retries + 1):
            self.invoker.purge_broadcast_history(chain_id, rpc_url=request.config.rpc_url)
            delay = self.stale_base_delay * index
            attempts.append(RetryAttempt(index=index, failure=redact(last_failure), delay=delay))
            logger.warning(
                "Stale broadcast history deploying %s, retry %d/%d in %.1fs",
                request.contract_name,
                index,
                self.stale_max_retries,
                delay,
            )
            self.sleep(delay)

            result = self.invoker.run(command.program, command.args)
            if result.success:
                return Resolution(result=result, attempts=attempts)

            last_failure = result.stderr
            if classify_failure(result.stderr) not in (
                FailureKind.STALE_HISTORY,
                FailureKind.TRANSIENT_NETWORK,
            ):
                raise self._fatal(request, result.stderr, "Stale-history retry failed")

        raise self._fatal(
            request,
            last_failure,
            f"Stale broadcast history persisted after {self.stale_max_retries} retries",
        )

    def _soft_outcome(
        self, failure: ProcessResult, request: DeploymentRequest, artifact_dir: Path
    ) -> Resolution:
        address = existing_address(request.contract_name, request.network, artifact_dir)
        if address is None:
            address = find_address(failure.output)

        if address:
            logger.warning(
                "%s was already imported on network '%s', using existing address %s",
                request.contract_name,
                request.network,
                address,
            )
        else:
            logger.warning(
                "%s was already imported on network '%s' but its address could not be "
                "recovered; redeploy with force or record the address manually. Output: %s",
                request.contract_name,
                request.network,
                redact(failure.stderr.strip()),
            )

        return Resolution(soft=True, address=address or "")
