"""Registry of synthetic assets; mints and burns on behalf of authorized vaults."""
from __future__ import annotations

import logging

from ..constants import ISSUER_NAME, ORACLE_NAME, WAD
from ..errors import (
    AuthorizationError,
    NonZeroSupplyError,
    ValidationError,
)
from ..events import EventLog
from ..interfaces.clock import Clock
from ..interfaces.ledger import TokenLedger
from ..ownership import Ownable
from ..resolver import DependencyCache, NameRegistry

logger = logging.getLogger(__name__)


class Issuer:
    """Maps currency keys to token ledgers and gates supply changes."""

    def __init__(
        self,
        owner: str,
        registry: NameRegistry,
        clock: Clock,
        address: str = ISSUER_NAME,
    ) -> None:
        self.address = address
        self.events = EventLog(address, clock, logger)
        self.ownership = Ownable(owner, self.events)
        self.cache = DependencyCache(
            registry, self.required_names(), self.events, address
        )
        self._assets: dict[str, TokenLedger] = {}
        self._keys_by_address: dict[str, str] = {}
        # Enumerable key set: list plus index map for O(1) swap-and-pop removal.
        self._keys: list[str] = []
        self._key_index: dict[str, int] = {}
        self._authorized: set[str] = set()

    @staticmethod
    def required_names() -> tuple[str, ...]:
        return (ORACLE_NAME,)

    def rebuild_cache(self) -> None:
        self.cache.rebuild()

    def is_cache_current(self) -> bool:
        return self.cache.is_current()

    # ------------------------------------------------------------------
    # Asset registration (owner only)
    # ------------------------------------------------------------------

    def add_asset(self, caller: str, token: TokenLedger) -> None:
        self.ownership.require_owner(caller)
        key = token.currency_key
        if key in self._assets:
            raise ValidationError(f"Currency key {key} already registered")
        if token.address in self._keys_by_address:
            raise ValidationError(f"Token {token.address} already registered")

        self._assets[key] = token
        self._keys_by_address[token.address] = key
        self._key_index[key] = len(self._keys)
        self._keys.append(key)
        self.events.emit("AssetAdded", key=key, token=token.address)

    def remove_asset(self, caller: str, key: str) -> None:
        self.ownership.require_owner(caller)
        token = self._require_asset(key)
        if token.total_supply() != 0:
            raise NonZeroSupplyError(f"Cannot remove {key} with circulating supply")

        index = self._key_index.pop(key)
        last = self._keys.pop()
        if last != key:
            self._keys[index] = last
            self._key_index[last] = index

        del self._assets[key]
        del self._keys_by_address[token.address]
        self.events.emit("AssetRemoved", key=key, token=token.address)

    def available_currency_keys(self) -> tuple[str, ...]:
        return tuple(self._keys)

    def get_asset(self, key: str) -> TokenLedger | None:
        return self._assets.get(key)

    def asset_by_address(self, address: str) -> TokenLedger | None:
        key = self._keys_by_address.get(address)
        return self._assets.get(key) if key is not None else None

    def total_supply(self, key: str) -> int:
        return self._require_asset(key).total_supply()

    def _require_asset(self, key: str) -> TokenLedger:
        token = self._assets.get(key)
        if token is None:
            raise ValidationError(f"Currency key {key} not registered")
        return token

    # ------------------------------------------------------------------
    # Vault allowlist (owner only)
    # ------------------------------------------------------------------

    def authorize_vault(self, caller: str, vault: str) -> None:
        self.ownership.require_owner(caller)
        self._authorized.add(vault)
        self.events.emit("VaultAuthorized", vault=vault)

    def revoke_vault(self, caller: str, vault: str) -> None:
        self.ownership.require_owner(caller)
        self._authorized.discard(vault)
        self.events.emit("VaultRevoked", vault=vault)

    def is_authorized_vault(self, address: str) -> bool:
        return address in self._authorized

    # ------------------------------------------------------------------
    # Supply changes (authorized vaults only)
    # ------------------------------------------------------------------

    def _check_supply_call(self, caller: str, key: str, amount: int) -> TokenLedger:
        if caller not in self._authorized:
            raise AuthorizationError("Only authorized vaults can issue or burn")
        token = self._require_asset(key)
        if amount <= 0:
            raise ValidationError("Amount must be greater than 0")
        return token

    async def issue(self, caller: str, key: str, to: str, amount: int) -> None:
        token = self._check_supply_call(caller, key, amount)
        await token.mint(self.address, to, amount)
        self.events.emit("TokensIssued", key=key, to=to, amount=amount)

    async def burn(self, caller: str, key: str, account: str, amount: int) -> None:
        token = self._check_supply_call(caller, key, amount)
        await token.burn(self.address, account, amount)
        self.events.emit("TokensBurned", key=key, account=account, amount=amount)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    async def total_issued_value(self) -> int:
        """Best-effort USD value of all supply; unpriced assets are skipped."""
        oracle = self.cache.require(ORACLE_NAME)
        total = 0
        for key in self._keys:
            try:
                result = await oracle.get_price(key)
            except Exception as e:
                logger.warning("Skipping %s in total value: %s", key, e)
                continue
            if not result.is_valid:
                logger.warning("Skipping %s in total value: invalid price", key)
                continue
            total += self._assets[key].total_supply() * result.price // WAD
        return total
