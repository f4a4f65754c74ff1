"""Block confirmation waiting for forge-deployments library."""

import logging
import re
import time
from typing import Callable, Optional
from urllib.parse import urlparse

from .constants import (
    DEFAULT_CONFIRMATION_TIMEOUT,
    DEFAULT_CONFIRMATIONS,
    DEFAULT_POLL_INTERVAL,
    LOCAL_CONFIRMATIONS,
    LOCAL_NETWORK_NAMES,
)
from .invoker import ProcessInvoker
from .redaction import redact
from .types import ConfirmationWaitState

logger = logging.getLogger(__name__)

_LOOPBACK_HOST = re.compile(r"^(?:localhost|127(?:\.\d{1,3}){3}|0\.0\.0\.0|::1)$", re.IGNORECASE)


def is_local_network(network: str, rpc_url: Optional[str] = None) -> bool:
    """
    Check whether a network is a local development chain.

    Args:
        network: Network name
        rpc_url: RPC endpoint; a loopback host marks the network as local

    Returns:
        True for well-known local network names or loopback RPC hosts
    """
    if network.lower() in LOCAL_NETWORK_NAMES:
        return True

    if rpc_url:
        host = urlparse(rpc_url).hostname
        if host and _LOOPBACK_HOST.match(host):
            return True

    return False


def default_confirmations(network: str, rpc_url: Optional[str] = None) -> int:
    """Confirmations to wait for when the caller does not say: 0 locally, else 2."""
    if is_local_network(network, rpc_url):
        return LOCAL_CONFIRMATIONS
    return DEFAULT_CONFIRMATIONS


def wait_for_confirmations(
    tx_hash: str,
    rpc_url: str,
    confirmations: int,
    invoker: ProcessInvoker,
    timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """
    Wait until a transaction is buried under enough blocks.

    The transaction has already succeeded by the time this runs, so running
    out of time is only logged. A missing receipt means "not mined yet".

    Args:
        tx_hash: Transaction hash
        rpc_url: RPC endpoint
        confirmations: Required depth (chain head minus receipt block)
        invoker: Used for receipt and block-number probes
        timeout: Seconds before giving up
        poll_interval: Seconds between polls
        sleep: Delay function
        clock: Monotonic time source

    Returns:
        True if the depth was reached, False if the deadline passed first
    """
    started_at = clock()
    state = ConfirmationWaitState(
        tx_hash=tx_hash,
        confirmations=confirmations,
        started_at=started_at,
        poll_interval=poll_interval,
        deadline=started_at + timeout,
    )
    # Deploy tool output, so never logged verbatim
    shown_hash = redact(tx_hash)
    logger.info("Waiting for %d confirmations of %s", confirmations, shown_hash)

    while True:
        if state.receipt_block is None:
            receipt = invoker.transaction_receipt(tx_hash, rpc_url)
            if receipt is not None:
                state.receipt_block = receipt["blockNumber"]

        if state.receipt_block is not None:
            head = invoker.block_number(rpc_url)
            if head is not None:
                state.observed = head - state.receipt_block
                if state.observed >= confirmations:
                    logger.info(
                        "%s confirmed (%d/%d)", shown_hash, state.observed, confirmations
                    )
                    return True

        if clock() >= state.deadline:
            logger.warning(
                "Timed out after %.0fs waiting for %d confirmations of %s (have %d); "
                "the transaction was already sent",
                timeout,
                confirmations,
                shown_hash,
                state.observed,
            )
            return False

        sleep(poll_interval)
