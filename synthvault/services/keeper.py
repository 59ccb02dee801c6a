"""Keeper: pokes delayed prices and liquidates unhealthy positions."""
from __future__ import annotations

import asyncio
import logging

from ..config import KeeperConfig
from ..errors import ProtocolError
from ..models import LiquidationPreview, PositionReport
from ..oracles import PriceOracle
from ..vault import CollateralVault, ratios

logger = logging.getLogger(__name__)


class Keeper:
    """Off-chain actor that keeps settlement prices moving and clears bad debt."""

    def __init__(
        self,
        vault: CollateralVault,
        oracle: PriceOracle,
        config: KeeperConfig,
        liquidator: str | None = None,
    ) -> None:
        self._vault = vault
        self._oracle = oracle
        self._config = config
        self._liquidator = liquidator

    async def poke_prices(self, keys: list[str] | None = None) -> list[str]:
        """Poke every configured key; keys without a valid spot are skipped."""
        keys = list(self._config.poke_keys) if keys is None else keys
        poked = await self._oracle.poke_many(keys)
        skipped = [k for k in keys if k not in poked]
        if skipped:
            logger.warning("Poke skipped for: %s", ", ".join(skipped))
        return poked

    async def scan(self) -> tuple[PositionReport, ...]:
        """Report every account the vault has seen, priced like the liquidation check."""
        vault = self._vault
        source = vault.liquidation_price_source
        reports: list[PositionReport] = []

        for account in vault.accounts():
            position = vault.get_position(account)
            if position.is_empty:
                continue

            ratio = await vault.get_collateral_ratio(account, source)
            value = await vault.get_collateral_value(account)
            liquidatable = position.debt > 0 and ratio < vault.liquidation_ratio
            reward = 0
            if liquidatable:
                reward, _ = ratios.liquidation_split(
                    position.collateral, vault.liquidation_penalty
                )

            reports.append(
                PositionReport(
                    account=account,
                    collateral=position.collateral,
                    debt=position.debt,
                    collateral_ratio=ratio,
                    collateral_value=value,
                    liquidatable=liquidatable,
                    reward=reward,
                )
            )
            logger.debug(
                "Position %s · collateral=%d debt=%d ratio=%d liquidatable=%s",
                account,
                position.collateral,
                position.debt,
                ratio,
                liquidatable,
            )

        return tuple(reports)

    async def find_liquidatable(self) -> list[PositionReport]:
        return [r for r in await self.scan() if r.liquidatable]

    async def liquidate_all(
        self, liquidator: str | None = None
    ) -> dict[str, LiquidationPreview]:
        """Liquidate every eligible account; individual failures are logged."""
        liquidator = liquidator or self._liquidator
        if not liquidator:
            raise ValueError("No liquidator account configured")

        outcomes: dict[str, LiquidationPreview] = {}
        for report in await self.find_liquidatable():
            if report.account == liquidator:
                continue
            try:
                outcomes[report.account] = await self._vault.liquidate(
                    liquidator, report.account
                )
            except ProtocolError as e:
                logger.warning("Liquidation of %s failed: %s", report.account, e)

        if outcomes:
            logger.info("Liquidated %d positions", len(outcomes))
        return outcomes

    async def run_once(self) -> dict[str, LiquidationPreview]:
        await self.poke_prices()
        if not self._liquidator:
            for report in await self.find_liquidatable():
                logger.warning(
                    "Liquidatable %s · debt=%d ratio=%d",
                    report.account,
                    report.debt,
                    report.collateral_ratio,
                )
            return {}
        return await self.liquidate_all()

    async def run_continuous(
        self, interval_seconds: int | None = None, iterations: int | None = None
    ) -> None:
        """Run the keeper loop; ``iterations`` bounds it for tests."""
        interval = interval_seconds or self._config.interval_seconds
        logger.info("Starting keeper loop (every %d seconds)", interval)

        completed = 0
        while iterations is None or completed < iterations:
            try:
                await self.run_once()
            except ProtocolError as e:
                logger.error("Error in keeper loop: %s", e)
            completed += 1
            if iterations is None or completed < iterations:
                await asyncio.sleep(interval)
