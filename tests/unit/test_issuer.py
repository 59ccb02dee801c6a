"""Unit tests for the asset registry and supply gate."""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from conftest import ALICE, OWNER, System
from synthvault.constants import WAD
from synthvault.errors import AuthorizationError, NonZeroSupplyError, ValidationError
from synthvault.models import PriceResult
from synthvault.tokens import SyntheticToken


def _token(system: System, key: str) -> SyntheticToken:
    token = SyntheticToken(f"Synth {key}", key, key, OWNER, system.registry, system.clock)
    token.rebuild_cache()
    return token


class TestAssetRegistry:
    def test_available_keys_in_insertion_order(self, system: System) -> None:
        assert system.issuer.available_currency_keys() == ("mUSD", "mBTC", "WETH")

    def test_duplicate_key_rejected(self, system: System) -> None:
        clone = SyntheticToken("x", "x", "mUSD", OWNER, system.registry, system.clock)
        with pytest.raises(ValidationError, match="already registered"):
            system.issuer.add_asset(OWNER, clone)

    def test_duplicate_address_rejected(self, system: System) -> None:
        clone = SyntheticToken(
            "x", "x", "mNEW", OWNER, system.registry, system.clock, address="token:mUSD"
        )
        with pytest.raises(ValidationError, match="already registered"):
            system.issuer.add_asset(OWNER, clone)

    def test_add_owner_only(self, system: System) -> None:
        with pytest.raises(AuthorizationError):
            system.issuer.add_asset(ALICE, _token(system, "mGOLD"))

    def test_lookups(self, system: System) -> None:
        assert system.issuer.get_asset("mBTC") is system.mbtc
        assert system.issuer.asset_by_address("token:mBTC") is system.mbtc
        assert system.issuer.get_asset("mGOLD") is None
        assert system.issuer.asset_by_address("nowhere") is None

    def test_remove_swaps_last_into_slot(self, system: System) -> None:
        system.issuer.remove_asset(OWNER, "mUSD")
        assert system.issuer.available_currency_keys() == ("WETH", "mBTC")
        assert system.issuer.get_asset("mUSD") is None
        assert system.issuer.asset_by_address("token:mUSD") is None

    def test_remove_last_key(self, system: System) -> None:
        system.issuer.remove_asset(OWNER, "WETH")
        assert system.issuer.available_currency_keys() == ("mUSD", "mBTC")

    @pytest.mark.asyncio
    async def test_remove_with_supply_rejected(self, system: System, give_synth) -> None:
        await give_synth("mBTC", ALICE, WAD)
        with pytest.raises(NonZeroSupplyError):
            system.issuer.remove_asset(OWNER, "mBTC")
        assert "mBTC" in system.issuer.available_currency_keys()

    def test_remove_unknown(self, system: System) -> None:
        with pytest.raises(ValidationError, match="not registered"):
            system.issuer.remove_asset(OWNER, "mGOLD")

    def test_readd_after_remove(self, system: System) -> None:
        system.issuer.remove_asset(OWNER, "mBTC")
        system.issuer.add_asset(OWNER, system.mbtc)
        assert system.issuer.available_currency_keys()[-1] == "mBTC"


class TestSupplyGate:
    @pytest.mark.asyncio
    async def test_unauthorized_issue(self, system: System) -> None:
        with pytest.raises(AuthorizationError, match="Only authorized vaults"):
            await system.issuer.issue(ALICE, "mUSD", ALICE, WAD)

    @pytest.mark.asyncio
    async def test_issue_and_burn(self, system: System) -> None:
        await system.issuer.issue(OWNER, "mUSD", ALICE, 3 * WAD)
        assert system.issuer.total_supply("mUSD") == 3 * WAD
        await system.issuer.burn(OWNER, "mUSD", ALICE, WAD)
        assert system.musd.balance_of(ALICE) == 2 * WAD
        names = [e.name for e in system.issuer.events.all()[-2:]]
        assert names == ["TokensIssued", "TokensBurned"]

    @pytest.mark.asyncio
    async def test_unknown_key(self, system: System) -> None:
        with pytest.raises(ValidationError):
            await system.issuer.issue(OWNER, "mGOLD", ALICE, WAD)

    @pytest.mark.asyncio
    async def test_zero_amount(self, system: System) -> None:
        with pytest.raises(ValidationError, match="greater than 0"):
            await system.issuer.issue(OWNER, "mUSD", ALICE, 0)

    @pytest.mark.asyncio
    async def test_revoked_vault(self, system: System) -> None:
        system.issuer.revoke_vault(OWNER, OWNER)
        assert not system.issuer.is_authorized_vault(OWNER)
        with pytest.raises(AuthorizationError):
            await system.issuer.issue(OWNER, "mUSD", ALICE, WAD)

    def test_total_supply_unknown_key(self, system: System) -> None:
        with pytest.raises(ValidationError):
            system.issuer.total_supply("mGOLD")


class TestTotalIssuedValue:
    @pytest.mark.asyncio
    async def test_sums_priced_assets(self, system: System, give_synth) -> None:
        await give_synth("mUSD", ALICE, 500 * WAD)
        await give_synth("mBTC", ALICE, WAD // 100)
        # WETH has no oracle price and is skipped
        await give_synth("WETH", ALICE, WAD)
        assert await system.issuer.total_issued_value() == 1500 * WAD

    @pytest.mark.asyncio
    async def test_oracle_errors_skipped(self, system: System, give_synth) -> None:
        await give_synth("mUSD", ALICE, 500 * WAD)
        system.oracle.get_price = AsyncMock(
            side_effect=[PriceResult(WAD, True), RuntimeError("boom"), PriceResult(0, False)]
        )
        assert await system.issuer.total_issued_value() == 500 * WAD
