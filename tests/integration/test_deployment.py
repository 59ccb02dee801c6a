"""Integration tests for wiring a protocol from YAML configuration."""
from __future__ import annotations

from pathlib import Path

import pytest

from conftest import ALICE, OWNER, ManualClock, StubAggregator
from synthvault.config import load_config
from synthvault.constants import WAD
from synthvault.oracles import PythPriceReference
from synthvault.services import deploy


class TestDeploy:
    @pytest.mark.asyncio
    async def test_components_wired(self, sample_yaml_path: Path) -> None:
        protocol = await deploy(load_config(sample_yaml_path), clock=ManualClock())

        assert protocol.owner == OWNER
        assert protocol.stale_caches() == []
        assert protocol.registry.get_address("PriceOracle") is protocol.oracle
        assert protocol.registry.get_address("mBTC") is protocol.tokens["mBTC"]
        assert protocol.issuer.available_currency_keys() == ("mUSD", "mBTC", "WETH")
        assert protocol.issuer.is_authorized_vault(protocol.vault.address)
        assert protocol.issuer.is_authorized_vault(protocol.swap.address)
        assert protocol.token("WETH") is protocol.collateral_token

    @pytest.mark.asyncio
    async def test_prices_and_bootstrap(self, sample_yaml_path: Path) -> None:
        protocol = await deploy(load_config(sample_yaml_path), clock=ManualClock())

        assert await protocol.oracle.get_collateral_price() == 2000 * WAD
        settlement = await protocol.oracle.get_settlement_price("COLLATERAL")
        assert settlement.price == 2000 * WAD
        assert protocol.oracle.get_osm_state("mBTC") is None
        assert protocol.vault.min_collateral_ratio == 3 * WAD // 2

    @pytest.mark.asyncio
    async def test_explicit_price_references(self, sample_yaml_path: Path) -> None:
        aggregator = StubAggregator(95_000 * 10**8)
        protocol = await deploy(
            load_config(sample_yaml_path),
            clock=ManualClock(),
            price_references={"mBTC": aggregator},
        )
        result = await protocol.oracle.get_price("mBTC")
        assert result.price == 95_000 * WAD
        assert aggregator.round_calls == 1

    @pytest.mark.asyncio
    async def test_pyth_references_from_config(
        self, tmp_path: Path, sample_yaml_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        text = sample_yaml_path.read_text().replace("feeds: {}", "feeds: {mBTC: abc123}")
        cfg_file = tmp_path / "with_feeds.yaml"
        cfg_file.write_text(text)

        async def fake_decimals(self: PythPriceReference) -> int:
            return 8

        monkeypatch.setattr(PythPriceReference, "decimals", fake_decimals)
        protocol = await deploy(load_config(cfg_file), clock=ManualClock())

        feed = protocol.oracle.get_feed("mBTC")
        assert isinstance(feed.aggregator, PythPriceReference)
        assert feed.aggregator.feed_id == "abc123"
        assert feed.decimals == 8
        assert not feed.use_manual

    @pytest.mark.asyncio
    async def test_deployed_protocol_mints(self, sample_yaml_path: Path) -> None:
        protocol = await deploy(load_config(sample_yaml_path), clock=ManualClock())
        weth = protocol.collateral_token
        vault = protocol.vault

        protocol.issuer.authorize_vault(OWNER, OWNER)
        await protocol.issuer.issue(OWNER, "WETH", ALICE, WAD)
        await weth.approve(ALICE, vault.address, WAD)
        await vault.deposit(ALICE, WAD)
        await vault.mint(ALICE, 1000 * WAD)

        assert protocol.token("mUSD").balance_of(ALICE) == 1000 * WAD

    @pytest.mark.asyncio
    async def test_rewiring_marks_caches_stale(self, sample_yaml_path: Path) -> None:
        protocol = await deploy(load_config(sample_yaml_path), clock=ManualClock())
        protocol.registry.import_addresses(OWNER, ["Issuer"], [object()])
        assert set(protocol.stale_caches()) >= {
            "token:mUSD",
            "token:mBTC",
            "token:WETH",
            protocol.vault.address,
            protocol.swap.address,
        }
