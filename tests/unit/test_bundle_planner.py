"""
Unit tests for BundlePlanner.

Tests input validation, path selection and the suspicious-token
confirmation step.

Usage:
    pytest tests/unit/test_bundle_planner.py
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from convoyeur.application.bundle_planner import BundlePlanner
from convoyeur.domain.entities import ExecutionPath, Readiness, WalletCapabilities
from convoyeur.domain.exceptions import (
    NothingToTransferError,
    TransferDeclinedError,
    ValidationError,
)
from tests.fakes import (
    READY,
    RECIPIENT,
    SENDER,
    USDC,
    fungible_token,
    make_network,
    native_token,
    nft_token,
)


def negotiator_returning(capabilities: WalletCapabilities) -> MagicMock:
    negotiator = MagicMock()
    negotiator.negotiate = AsyncMock(return_value=capabilities)
    return negotiator


class TestValidation:
    """Tests for selection validation."""

    @pytest.mark.parametrize(
        "from_address, to_address, message",
        [
            ("0xbad", RECIPIENT, "Invalid sender address"),
            (SENDER, "0xbad", "Invalid recipient address"),
            (SENDER, SENDER.upper().replace("0X", "0x"), "must differ"),
        ],
    )
    async def test_rejects_addresses(self, provider, from_address, to_address, message):
        """Test bad addresses fail before the wallet is consulted."""
        negotiator = negotiator_returning(READY)
        planner = BundlePlanner(negotiator=negotiator)

        with pytest.raises(ValidationError, match=message):
            await planner.plan(
                [native_token()], from_address, to_address, provider, make_network()
            )

        negotiator.negotiate.assert_not_awaited()

    async def test_rejects_empty_selection(self, provider):
        """Test an empty selection is rejected."""
        planner = BundlePlanner(negotiator=negotiator_returning(READY))

        with pytest.raises(ValidationError, match="No tokens selected"):
            await planner.plan([], SENDER, RECIPIENT, provider, make_network())

    async def test_nothing_encodable(self, provider):
        """Test a selection of zero balances fails after validation."""
        planner = BundlePlanner(negotiator=negotiator_returning(READY))

        with pytest.raises(NothingToTransferError):
            await planner.plan(
                [fungible_token("0")], SENDER, RECIPIENT, provider, make_network()
            )


class TestPathSelection:
    """Tests for ATOMIC vs SEQUENTIAL tagging."""

    @pytest.mark.parametrize(
        "network_atomic, capabilities, expected",
        [
            (True, READY, ExecutionPath.ATOMIC),
            (
                True,
                WalletCapabilities(True, True, False, Readiness.SUPPORTED),
                ExecutionPath.ATOMIC,
            ),
            (False, READY, ExecutionPath.SEQUENTIAL),
            (True, WalletCapabilities.unsupported(), ExecutionPath.SEQUENTIAL),
        ],
    )
    async def test_path(self, provider, network_atomic, capabilities, expected):
        """Test atomic needs both network and wallet support."""
        planner = BundlePlanner(negotiator=negotiator_returning(capabilities))
        network = make_network(atomic_execution_supported=network_atomic)

        plan = await planner.plan(
            [native_token(), fungible_token()], SENDER, RECIPIENT, provider, network
        )

        assert plan.path == expected
        assert plan.capabilities == capabilities

    async def test_calls_do_not_depend_on_path(self, provider):
        """Test the same selection encodes identically on both paths."""
        tokens = [fungible_token(), nft_token(), native_token()]
        atomic = await BundlePlanner(negotiator=negotiator_returning(READY)).plan(
            tokens, SENDER, RECIPIENT, provider, make_network()
        )
        sequential = await BundlePlanner(
            negotiator=negotiator_returning(WalletCapabilities.unsupported())
        ).plan(tokens, SENDER, RECIPIENT, provider, make_network())

        assert atomic.calls == sequential.calls
        assert atomic.path != sequential.path

    async def test_plan_keeps_order_and_skips(self, provider):
        """Test calls follow selection order and skipped tokens are listed."""
        planner = BundlePlanner(negotiator=negotiator_returning(READY))
        tokens = [fungible_token(), fungible_token("0", address="0x" + "33" * 20)]

        plan = await planner.plan(tokens, SENDER, RECIPIENT, provider, make_network())

        assert [c.target for c in plan.calls] == [USDC]
        assert len(plan.skipped) == 1
        assert len(plan.calls) <= len(tokens)
        assert plan.from_address == SENDER
        assert plan.to_address == RECIPIENT

    async def test_negotiates_for_sender(self, provider):
        """Test capabilities are scoped to the sending account."""
        negotiator = negotiator_returning(READY)
        planner = BundlePlanner(negotiator=negotiator)

        await planner.plan([native_token()], SENDER, RECIPIENT, provider, make_network())

        negotiator.negotiate.assert_awaited_once_with(provider, SENDER)


class TestSuspiciousTokens:
    """Tests for the confirmation callback."""

    async def test_declined(self, provider):
        """Test declining stops planning before negotiation."""
        negotiator = negotiator_returning(READY)
        confirm = AsyncMock(return_value=False)
        planner = BundlePlanner(negotiator=negotiator, confirm_suspicious=confirm)
        scam = fungible_token(symbol="FREE", address="0x" + "44" * 20, is_scam=True)

        with pytest.raises(TransferDeclinedError):
            await planner.plan(
                [native_token(), scam], SENDER, RECIPIENT, provider, make_network()
            )

        confirm.assert_awaited_once_with([scam])
        negotiator.negotiate.assert_not_awaited()

    async def test_confirmed(self, provider):
        """Test confirmed suspicious tokens are planned."""
        confirm = AsyncMock(return_value=True)
        planner = BundlePlanner(
            negotiator=negotiator_returning(READY), confirm_suspicious=confirm
        )
        scam = fungible_token(is_scam=True)

        plan = await planner.plan([scam], SENDER, RECIPIENT, provider, make_network())

        assert len(plan.calls) == 1

    async def test_clean_selection_skips_callback(self, provider):
        """Test the callback is only consulted for flagged tokens."""
        confirm = AsyncMock(return_value=False)
        planner = BundlePlanner(
            negotiator=negotiator_returning(READY), confirm_suspicious=confirm
        )

        await planner.plan([fungible_token()], SENDER, RECIPIENT, provider, make_network())

        confirm.assert_not_awaited()
