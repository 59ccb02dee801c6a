"""Fixed-point scale and protocol-wide constants."""

WAD = 10**18  # 1.0 in 18-decimal fixed point

STALE_PERIOD = 60 * 60  # 1 hour
OSM_DELAY = 30 * 60  # 30 minutes

MAX_SWAP_FEE = WAD // 10  # 10%
DEFAULT_SWAP_FEE = 3 * WAD // 1000  # 0.3%

# Collateral ratio reported for debt-free positions
MAX_RATIO = 2**256 - 1

NATIVE_KEY = "mUSD"
COLLATERAL_KEY = "COLLATERAL"

# Registry names
ORACLE_NAME = "PriceOracle"
ISSUER_NAME = "Issuer"
VAULT_NAME = "CollateralVault"
SWAP_NAME = "SwapEngine"

# Where the liquidation check reads the collateral price from
PRICE_SOURCES = ("spot", "settlement")
