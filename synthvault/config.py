"""Configuration loader: reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .constants import (
    COLLATERAL_KEY,
    DEFAULT_SWAP_FEE,
    MAX_SWAP_FEE,
    NATIVE_KEY,
    OSM_DELAY,
    PRICE_SOURCES,
    STALE_PERIOD,
    WAD,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProtocolConfig:
    owner: str = ""
    native_key: str = NATIVE_KEY
    collateral_key: str = COLLATERAL_KEY


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feeds: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class OracleConfig:
    stale_period: int = STALE_PERIOD
    osm_delay: int = OSM_DELAY
    osm_enabled: bool = True
    manual_prices: dict[str, int] = field(default_factory=dict)
    osm_bootstrap: tuple[str, ...] = ()
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class VaultConfig:
    collateral_symbol: str = "WETH"
    synthetic_key: str = NATIVE_KEY
    min_collateral_ratio: int = 3 * WAD // 2
    liquidation_ratio: int = 6 * WAD // 5
    liquidation_penalty: int = WAD // 10
    liquidation_price_source: str = "spot"


@dataclass(frozen=True)
class SwapConfig:
    fee_rate: int = DEFAULT_SWAP_FEE


@dataclass(frozen=True)
class AssetConfig:
    key: str = ""
    name: str = ""
    symbol: str = ""


@dataclass(frozen=True)
class KeeperConfig:
    interval_seconds: int = 60
    poke_keys: tuple[str, ...] = ()


@dataclass(frozen=True)
class AppConfig:
    protocol: ProtocolConfig = field(default_factory=ProtocolConfig)
    oracle: OracleConfig = field(default_factory=OracleConfig)
    vault: VaultConfig = field(default_factory=VaultConfig)
    swap: SwapConfig = field(default_factory=SwapConfig)
    assets: tuple[AssetConfig, ...] = ()
    keeper: KeeperConfig = field(default_factory=KeeperConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


def to_wad(value: Any) -> int:
    """Convert a decimal literal such as "1.5" to 18-decimal fixed point."""
    try:
        return int(Decimal(str(value)) * WAD)
    except InvalidOperation as e:
        raise ValueError(f"Not a decimal number: {value!r}") from e


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_protocol(raw: dict[str, Any]) -> ProtocolConfig:
    return ProtocolConfig(
        owner=raw.get("owner", ""),
        native_key=raw.get("native_key", NATIVE_KEY),
        collateral_key=raw.get("collateral_key", COLLATERAL_KEY),
    )


def _build_oracle(raw: dict[str, Any]) -> OracleConfig:
    pyth_raw = raw.get("pyth", {})
    return OracleConfig(
        stale_period=int(raw.get("stale_period", STALE_PERIOD)),
        osm_delay=int(raw.get("osm_delay", OSM_DELAY)),
        osm_enabled=bool(raw.get("osm_enabled", True)),
        manual_prices={
            key: to_wad(price) for key, price in raw.get("manual_prices", {}).items()
        },
        osm_bootstrap=tuple(raw.get("osm_bootstrap", [])),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            feeds=dict(pyth_raw.get("feeds", {})),
        ),
    )


def _build_vault(raw: dict[str, Any]) -> VaultConfig:
    return VaultConfig(
        collateral_symbol=raw.get("collateral_symbol", "WETH"),
        synthetic_key=raw.get("synthetic_key", NATIVE_KEY),
        min_collateral_ratio=to_wad(raw.get("min_collateral_ratio", "1.5")),
        liquidation_ratio=to_wad(raw.get("liquidation_ratio", "1.2")),
        liquidation_penalty=to_wad(raw.get("liquidation_penalty", "0.1")),
        liquidation_price_source=raw.get("liquidation_price_source", "spot"),
    )


def _build_swap(raw: dict[str, Any]) -> SwapConfig:
    return SwapConfig(fee_rate=to_wad(raw.get("fee_rate", "0.003")))


def _build_assets(raw: list[dict[str, Any]]) -> tuple[AssetConfig, ...]:
    assets: list[AssetConfig] = []
    for a in raw:
        key = a.get("key", "")
        assets.append(
            AssetConfig(
                key=key,
                name=a.get("name", key),
                symbol=a.get("symbol", key),
            )
        )
    return tuple(assets)


def _build_keeper(raw: dict[str, Any]) -> KeeperConfig:
    return KeeperConfig(
        interval_seconds=int(raw.get("interval_seconds", 60)),
        poke_keys=tuple(raw.get("poke_keys", [])),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate protocol configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        protocol=_build_protocol(raw.get("protocol", {})),
        oracle=_build_oracle(raw.get("oracle", {})),
        vault=_build_vault(raw.get("vault", {})),
        swap=_build_swap(raw.get("swap", {})),
        assets=_build_assets(raw.get("assets", [])),
        keeper=_build_keeper(raw.get("keeper", {})),
    )

    validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.protocol.owner:
        raise ValueError("Protocol owner must be configured")

    vault = cfg.vault
    if vault.min_collateral_ratio <= 0 or vault.liquidation_ratio <= 0:
        raise ValueError("Collateral ratios must be positive")
    if vault.liquidation_ratio > vault.min_collateral_ratio:
        raise ValueError("liquidation_ratio cannot exceed min_collateral_ratio")
    if not 0 <= vault.liquidation_penalty < WAD:
        raise ValueError("liquidation_penalty must be in [0, 1)")
    if vault.liquidation_price_source not in PRICE_SOURCES:
        raise ValueError(
            f"Unknown liquidation_price_source '{vault.liquidation_price_source}'"
        )

    if not 0 <= cfg.swap.fee_rate <= MAX_SWAP_FEE:
        raise ValueError("Swap fee_rate cannot exceed 10%")

    keys = [asset.key for asset in cfg.assets]
    if any(not key for key in keys):
        raise ValueError("Every asset needs a key")
    if len(set(keys)) != len(keys):
        raise ValueError("Asset keys must be unique")
    if vault.collateral_symbol in keys:
        raise ValueError("collateral_symbol clashes with a synthetic asset key")
    if vault.synthetic_key not in keys:
        raise ValueError(
            f"Vault synthetic_key '{vault.synthetic_key}' is not a configured asset"
        )

    native = cfg.protocol.native_key
    if native in cfg.oracle.manual_prices or native in cfg.oracle.pyth.feeds:
        raise ValueError(f"The {native} price is fixed and cannot be configured")

    for key in cfg.oracle.osm_bootstrap:
        if key not in cfg.oracle.manual_prices:
            raise ValueError(f"osm_bootstrap key '{key}' has no manual price")
