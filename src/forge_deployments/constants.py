"""Configuration constants for forge-deployments library."""

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DEFAULT_NETWORK = "local"

# Anvil's default chain id
DEFAULT_CHAIN_ID = 31337

FORGE_COMMAND = "forge"
CAST_COMMAND = "cast"

# Network names always treated as local (no confirmations needed)
LOCAL_NETWORK_NAMES = frozenset({"local", "localhost", "anvil", "hardhat", "development"})

DEFAULT_CONFIRMATIONS = 2
LOCAL_CONFIRMATIONS = 0
DEFAULT_CONFIRMATION_TIMEOUT = 300.0  # seconds
DEFAULT_POLL_INTERVAL = 2.0  # seconds

# Mempool conflicts: one retry per multiplier, each strictly larger than the last
GAS_PRICE_MULTIPLIERS = (1.5, 2.0, 3.0)
MEMPOOL_RETRY_DELAY = 2.0  # seconds

# Stale broadcast history: wait STALE_HISTORY_BASE_DELAY * attempt between retries
STALE_HISTORY_MAX_RETRIES = 3
STALE_HISTORY_BASE_DELAY = 2.0  # seconds

# Pause between consecutive deploy scripts so RPC/chain state can settle
SCRIPT_PAUSE = 3.0  # seconds

REDACTED = "[REDACTED]"

# Verification defaults when foundry.toml does not say otherwise
DEFAULT_COMPILER_VERSION = "0.8.18"
DEFAULT_OPTIMIZER_RUNS = 200

# Block explorers used for verification
EXPLORER_CONFIG = {
    "sepolia": {
        "api_url": "https://api-sepolia.etherscan.io/api",
        "explorer_url": "https://sepolia.etherscan.io/address",
    },
    "mainnet": {
        "api_url": "https://api.etherscan.io/api",
        "explorer_url": "https://etherscan.io/address",
    },
    "testnet": {
        "api_url": "https://api-testnet.bscscan.com/api",
        "explorer_url": "https://testnet.bscscan.com/address",
    },
    "bsc_testnet": {
        "api_url": "https://api-testnet.bscscan.com/api",
        "explorer_url": "https://testnet.bscscan.com/address",
    },
    "bsc": {
        "api_url": "https://api.bscscan.com/api",
        "explorer_url": "https://bscscan.com/address",
    },
}
