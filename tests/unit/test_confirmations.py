"""Unit tests for confirmation waiting."""

import logging

import pytest

from conftest import TX_HASH, FakeClock, FakeInvoker
from forge_deployments.confirmations import (
    default_confirmations,
    is_local_network,
    wait_for_confirmations,
)

RPC_URL = "https://rpc.sepolia.example.org"


def wait(invoker: FakeInvoker, clock: FakeClock, confirmations: int = 2, timeout: float = 300.0):
    return wait_for_confirmations(
        TX_HASH,
        RPC_URL,
        confirmations,
        invoker,
        timeout=timeout,
        poll_interval=2.0,
        sleep=clock.sleep,
        clock=clock,
    )


class TestLocalNetworkDetection:
    """Test the is_local_network function."""

    @pytest.mark.parametrize("network", ["local", "localhost", "Anvil", "hardhat", "development"])
    def test_local_names(self, network: str):
        assert is_local_network(network)

    @pytest.mark.parametrize(
        "rpc_url",
        [
            "http://localhost:8545",
            "http://127.0.0.1:8545",
            "http://0.0.0.0:8545",
            "http://[::1]:8545",
        ],
    )
    def test_loopback_rpc(self, rpc_url: str):
        """Test that any network name served from loopback counts as local."""
        assert is_local_network("devnet", rpc_url)

    def test_remote_network(self):
        assert not is_local_network("sepolia", RPC_URL)
        assert not is_local_network("sepolia")

    def test_default_confirmations(self):
        assert default_confirmations("local") == 0
        assert default_confirmations("devnet", "http://127.0.0.1:8545") == 0
        assert default_confirmations("sepolia", RPC_URL) == 2


class TestWaitForConfirmations:
    """Test the wait_for_confirmations function."""

    def test_waits_until_depth_reached(self, fake_clock: FakeClock):
        invoker = FakeInvoker(receipts=[100], heads=[100, 101, 102])

        assert wait(invoker, fake_clock) is True
        assert fake_clock.sleeps == [2.0, 2.0]

    def test_already_deep_enough(self, fake_clock: FakeClock):
        invoker = FakeInvoker(receipts=[100], heads=[110])

        assert wait(invoker, fake_clock) is True
        assert fake_clock.sleeps == []

    def test_missing_receipt_means_not_mined(self, fake_clock: FakeClock):
        """Test that a None receipt is polled again rather than treated as an error."""
        invoker = FakeInvoker(receipts=[None, None, 50], heads=[52])

        assert wait(invoker, fake_clock) is True
        assert fake_clock.sleeps == [2.0, 2.0]

    def test_failed_head_probe_is_retried(self, fake_clock: FakeClock):
        invoker = FakeInvoker(receipts=[10], heads=[None, 12])

        assert wait(invoker, fake_clock) is True
        assert len(fake_clock.sleeps) == 1

    def test_timeout_returns_false(self, fake_clock: FakeClock):
        """Test that running out of time is reported, not raised."""
        invoker = FakeInvoker(receipts=[None])

        assert wait(invoker, fake_clock, timeout=10.0) is False
        assert fake_clock.sleeps == [2.0] * 5
        assert fake_clock.now == 1010.0

    def test_timeout_with_shallow_depth(self, fake_clock: FakeClock):
        invoker = FakeInvoker(receipts=[100], heads=[100])

        assert wait(invoker, fake_clock, confirmations=3, timeout=4.0) is False

    def test_hash_redacted_in_logs(self, fake_clock: FakeClock, caplog: pytest.LogCaptureFixture):
        invoker = FakeInvoker(receipts=[None])

        with caplog.at_level(logging.INFO, logger="forge_deployments"):
            wait(invoker, fake_clock, timeout=2.0)

        assert "Timed out" in caplog.text
        assert TX_HASH[2:] not in caplog.text
