"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from dataclasses import dataclass
from pathlib import Path

import pytest

from synthvault.constants import ISSUER_NAME, ORACLE_NAME, SWAP_NAME, VAULT_NAME, WAD
from synthvault.issuer import Issuer
from synthvault.models import RoundData
from synthvault.oracles import PriceOracle
from synthvault.resolver import NameRegistry
from synthvault.swap import SwapEngine
from synthvault.tokens import SyntheticToken
from synthvault.vault import CollateralVault

OWNER = "0xOWNER"
ALICE = "0xALICE"
BOB = "0xBOB"
CAROL = "0xCAROL"

T0 = 1_700_000_000


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class ManualClock:
    """Clock the test moves by hand."""

    def __init__(self, start: int = T0) -> None:
        self.current = start

    def now(self) -> int:
        return self.current

    def advance(self, seconds: int) -> None:
        self.current += seconds


class StubAggregator:
    """External price reference with scriptable answers and failures."""

    def __init__(
        self,
        answer: int,
        decimals: int = 8,
        updated_at: int = T0,
        fail_round: bool = False,
        fail_decimals: bool = False,
    ) -> None:
        self.answer = answer
        self._decimals = decimals
        self.updated_at = updated_at
        self.fail_round = fail_round
        self.fail_decimals = fail_decimals
        self.round_calls = 0

    async def latest_round_data(self) -> RoundData:
        self.round_calls += 1
        if self.fail_round:
            raise RuntimeError("execution reverted")
        return RoundData(1, self.answer, self.updated_at, self.updated_at, 1)

    async def decimals(self) -> int:
        if self.fail_decimals:
            raise RuntimeError("execution reverted")
        return self._decimals


# ---------------------------------------------------------------------------
# Wired protocol fixture
# ---------------------------------------------------------------------------


@dataclass
class System:
    clock: ManualClock
    registry: NameRegistry
    oracle: PriceOracle
    issuer: Issuer
    vault: CollateralVault
    swap: SwapEngine
    musd: SyntheticToken
    mbtc: SyntheticToken
    weth: SyntheticToken


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def registry(clock: ManualClock) -> NameRegistry:
    return NameRegistry(OWNER, clock)


@pytest.fixture()
def system(clock: ManualClock, registry: NameRegistry) -> System:
    """Oracle, issuer, mUSD/mBTC/WETH, vault (150/120/10%) and swap (0.3%)."""
    oracle = PriceOracle(OWNER, clock)
    issuer = Issuer(OWNER, registry, clock)
    musd = SyntheticToken("Synth USD", "mUSD", "mUSD", OWNER, registry, clock)
    mbtc = SyntheticToken("Synth Bitcoin", "mBTC", "mBTC", OWNER, registry, clock)
    weth = SyntheticToken("Wrapped Ether", "WETH", "WETH", OWNER, registry, clock)
    vault = CollateralVault(
        OWNER,
        registry,
        clock,
        weth,
        "mUSD",
        min_collateral_ratio=3 * WAD // 2,
        liquidation_ratio=6 * WAD // 5,
        liquidation_penalty=WAD // 10,
    )
    swap = SwapEngine(OWNER, registry, clock, swap_fee_rate=3 * WAD // 1000)

    registry.import_addresses(
        OWNER,
        [ORACLE_NAME, ISSUER_NAME, VAULT_NAME, SWAP_NAME],
        [oracle, issuer, vault, swap],
    )
    for component in (musd, mbtc, weth, issuer, vault, swap):
        component.rebuild_cache()

    for token in (musd, mbtc, weth):
        issuer.add_asset(OWNER, token)
    issuer.authorize_vault(OWNER, vault.address)
    issuer.authorize_vault(OWNER, swap.address)
    # Owner acts as the collateral faucet
    issuer.authorize_vault(OWNER, OWNER)

    oracle.set_manual_price(OWNER, "COLLATERAL", 2000 * WAD)
    oracle.set_manual_price(OWNER, "mBTC", 100_000 * WAD)

    return System(clock, registry, oracle, issuer, vault, swap, musd, mbtc, weth)


@pytest.fixture()
def fund(system: System):
    """Give ``account`` WETH and approve the vault to pull it."""

    async def _fund(account: str, amount: int, approve: bool = True) -> None:
        await system.issuer.issue(OWNER, "WETH", account, amount)
        if approve:
            await system.weth.approve(account, system.vault.address, amount)

    return _fund


@pytest.fixture()
def give_synth(system: System):
    """Issue a synthetic asset straight to ``account``."""

    async def _give(key: str, account: str, amount: int) -> None:
        await system.issuer.issue(OWNER, key, account, amount)

    return _give


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    protocol:
      owner: "0xOWNER"
    oracle:
      stale_period: 3600
      osm_delay: 1800
      manual_prices:
        COLLATERAL: "2000"
        mBTC: "100000"
      osm_bootstrap: [COLLATERAL]
      pyth:
        hermes_url: "https://hermes.example.com"
        feeds: {}
    vault:
      collateral_symbol: WETH
      synthetic_key: mUSD
      min_collateral_ratio: "1.5"
      liquidation_ratio: "1.2"
      liquidation_penalty: "0.1"
      liquidation_price_source: spot
    swap:
      fee_rate: "0.003"
    assets:
      - {key: mUSD, name: "Synth USD", symbol: mUSD}
      - {key: mBTC, name: "Synth Bitcoin", symbol: mBTC}
    keeper:
      interval_seconds: 30
      poke_keys: [COLLATERAL, mBTC]
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
