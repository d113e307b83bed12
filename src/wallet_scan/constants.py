"""Chain tables and engine defaults."""

from typing import TypedDict

NATIVE_TOKEN = "NATIVE"
UNKNOWN_TOKEN_SYMBOL = "UNKNOWN"
UNKNOWN_TOKEN_NAME = "Unknown Token"

EVM_NATIVE_DECIMALS = 18
SOLANA_NATIVE_DECIMALS = 9
DEFAULT_TOKEN_DECIMALS = 18

DEFAULT_REQUEST_TIMEOUT = 7.0  # seconds
DEFAULT_RETRY_ATTEMPTS = 2
DEFAULT_BACKOFF_BASE = 0.4  # seconds
DEFAULT_ALCHEMY_MAX_PAGES = 5
DEFAULT_MAX_CONCURRENT_REQUESTS = 16


class ChainInfo(TypedDict):
    """Static description of a supported chain."""

    family: str  # "evm" or "solana"
    native_symbol: str
    decimals: int
    alchemy_network: str | None
    public_rpc: list[str]


ALCHEMY_URL_TEMPLATE = "https://{network}.g.alchemy.com/v2/{{api_key}}"

# Alchemy first, public RPC as fallback. Order here is registry order.
CHAINS: dict[str, ChainInfo] = {
    "ethereum": {
        "family": "evm",
        "native_symbol": "ETH",
        "decimals": EVM_NATIVE_DECIMALS,
        "alchemy_network": "eth-mainnet",
        "public_rpc": ["https://eth.drpc.org"],
    },
    "polygon": {
        "family": "evm",
        "native_symbol": "POL",
        "decimals": EVM_NATIVE_DECIMALS,
        "alchemy_network": "polygon-mainnet",
        "public_rpc": ["https://polygon-rpc.com"],
    },
    "arbitrum": {
        "family": "evm",
        "native_symbol": "ETH",
        "decimals": EVM_NATIVE_DECIMALS,
        "alchemy_network": "arb-mainnet",
        "public_rpc": ["https://arb1.arbitrum.io/rpc"],
    },
    "optimism": {
        "family": "evm",
        "native_symbol": "ETH",
        "decimals": EVM_NATIVE_DECIMALS,
        "alchemy_network": "opt-mainnet",
        "public_rpc": ["https://mainnet.optimism.io"],
    },
    "base": {
        "family": "evm",
        "native_symbol": "ETH",
        "decimals": EVM_NATIVE_DECIMALS,
        "alchemy_network": "base-mainnet",
        "public_rpc": ["https://mainnet.base.org"],
    },
    "avalanche": {
        "family": "evm",
        "native_symbol": "AVAX",
        "decimals": EVM_NATIVE_DECIMALS,
        "alchemy_network": "avax-mainnet",
        "public_rpc": ["https://api.avax.network/ext/bc/C/rpc"],
    },
    "bnb": {
        "family": "evm",
        "native_symbol": "BNB",
        "decimals": EVM_NATIVE_DECIMALS,
        "alchemy_network": None,
        "public_rpc": ["https://bsc-dataseed1.binance.org"],
    },
    "fantom": {
        "family": "evm",
        "native_symbol": "FTM",
        "decimals": EVM_NATIVE_DECIMALS,
        "alchemy_network": None,
        "public_rpc": ["https://rpc.fantom.network"],
    },
    "gnosis": {
        "family": "evm",
        "native_symbol": "xDAI",
        "decimals": EVM_NATIVE_DECIMALS,
        "alchemy_network": None,
        "public_rpc": ["https://rpc.gnosischain.com"],
    },
    "cronos": {
        "family": "evm",
        "native_symbol": "CRO",
        "decimals": EVM_NATIVE_DECIMALS,
        "alchemy_network": None,
        "public_rpc": ["https://evm.cronos.org"],
    },
    "solana": {
        "family": "solana",
        "native_symbol": "SOL",
        "decimals": SOLANA_NATIVE_DECIMALS,
        "alchemy_network": "solana-mainnet",
        "public_rpc": ["https://api.mainnet-beta.solana.com"],
    },
}

SPL_TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
MORALIS_SOLANA_PORTFOLIO_URL = (
    "https://solana-gateway.moralis.io/account/mainnet/{address}/portfolio"
)
