"""Build a fully wired in-process protocol from configuration."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from ..clock import SystemClock
from ..config import AppConfig
from ..constants import ISSUER_NAME, ORACLE_NAME, SWAP_NAME, VAULT_NAME
from ..interfaces.clock import Clock
from ..interfaces.price_reference import PriceReference
from ..issuer import Issuer
from ..oracles import PriceOracle, PythPriceReference
from ..resolver import NameRegistry
from ..swap import SwapEngine
from ..tokens import SyntheticToken
from ..vault import CollateralVault

logger = logging.getLogger(__name__)


@dataclass
class Protocol:
    """Handles to every deployed component."""

    config: AppConfig
    clock: Clock
    registry: NameRegistry
    oracle: PriceOracle
    issuer: Issuer
    vault: CollateralVault
    swap: SwapEngine
    collateral_token: SyntheticToken
    tokens: dict[str, SyntheticToken] = field(default_factory=dict)

    @property
    def owner(self) -> str:
        return self.config.protocol.owner

    def token(self, key: str) -> SyntheticToken:
        if key == self.collateral_token.currency_key:
            return self.collateral_token
        return self.tokens[key]

    def stale_caches(self) -> list[str]:
        """Addresses of components whose dependency cache needs a rebuild."""
        components = [
            *self.tokens.values(),
            self.collateral_token,
            self.issuer,
            self.vault,
            self.swap,
        ]
        return [c.address for c in components if not c.is_cache_current()]


async def deploy(
    config: AppConfig,
    clock: Clock | None = None,
    price_references: Mapping[str, PriceReference] | None = None,
) -> Protocol:
    """Deploy and wire every component.

    Args:
        config: Validated application configuration.
        clock: Time source; wall clock when omitted.
        price_references: Aggregators keyed by currency key. When omitted,
            a Pyth reference is created for every configured feed id.
    """
    clock = clock or SystemClock()
    owner = config.protocol.owner

    registry = NameRegistry(owner, clock)
    oracle = PriceOracle(
        owner,
        clock,
        native_key=config.protocol.native_key,
        collateral_key=config.protocol.collateral_key,
        stale_period=config.oracle.stale_period,
        osm_delay=config.oracle.osm_delay,
        osm_enabled=config.oracle.osm_enabled,
    )
    issuer = Issuer(owner, registry, clock)

    tokens = {
        asset.key: SyntheticToken(asset.name, asset.symbol, asset.key, owner, registry, clock)
        for asset in config.assets
    }
    symbol = config.vault.collateral_symbol
    collateral_token = SyntheticToken(symbol, symbol, symbol, owner, registry, clock)

    vault = CollateralVault(
        owner,
        registry,
        clock,
        collateral_token,
        config.vault.synthetic_key,
        config.vault.min_collateral_ratio,
        config.vault.liquidation_ratio,
        config.vault.liquidation_penalty,
        liquidation_price_source=config.vault.liquidation_price_source,
    )
    swap = SwapEngine(owner, registry, clock, config.swap.fee_rate)
    logger.info("Components deployed: %d synthetic assets", len(tokens))

    names = [ORACLE_NAME, ISSUER_NAME, VAULT_NAME, SWAP_NAME, *tokens]
    destinations = [oracle, issuer, vault, swap, *tokens.values()]
    registry.import_addresses(owner, names, destinations)

    for component in [*tokens.values(), collateral_token, issuer, vault, swap]:
        component.rebuild_cache()

    for token in [*tokens.values(), collateral_token]:
        issuer.add_asset(owner, token)
    issuer.authorize_vault(owner, vault.address)
    issuer.authorize_vault(owner, swap.address)

    for key, price in config.oracle.manual_prices.items():
        oracle.set_manual_price(owner, key, price)
    for key in config.oracle.osm_bootstrap:
        oracle.initialize_osm(owner, key, config.oracle.manual_prices[key])

    if price_references is None:
        price_references = {
            key: PythPriceReference(config.oracle.pyth.hermes_url, feed_id)
            for key, feed_id in config.oracle.pyth.feeds.items()
        }
    for key, reference in price_references.items():
        await oracle.add_aggregator(owner, key, reference)

    logger.info("Protocol wired: vault=%s swap=%s", vault.address, swap.address)
    return Protocol(
        config=config,
        clock=clock,
        registry=registry,
        oracle=oracle,
        issuer=issuer,
        vault=vault,
        swap=swap,
        collateral_token=collateral_token,
        tokens=tokens,
    )
