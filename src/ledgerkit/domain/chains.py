"""Static metadata about the supported blockchains."""

from dataclasses import dataclass
from datetime import datetime

from ledgerkit.domain.errors import ValidationError, unsupported_blockchain


@dataclass(frozen=True)
class ChainInfo:
    name: str
    native_currency: str
    chain_id: int
    supported_currencies: tuple[str, ...]
    # Used to approximate block heights from dates
    reference_date: datetime
    seconds_per_block: int
    page_size: int


CHAINS: dict[str, ChainInfo] = {
    "ethereum": ChainInfo(
        name="ethereum",
        native_currency="ETH",
        chain_id=1,
        supported_currencies=("ETH", "USDT", "USDC", "DAI", "WBTC", "WETH"),
        reference_date=datetime(2015, 7, 30),
        seconds_per_block=12,
        page_size=10000,
    ),
    "bsc": ChainInfo(
        name="bsc",
        native_currency="BNB",
        chain_id=56,
        supported_currencies=("BNB", "USDT", "USDC", "BUSD"),
        reference_date=datetime(2020, 9, 1),
        seconds_per_block=3,
        page_size=1000,
    ),
}

ALIASES = {
    "eth": "ethereum",
    "binance-smart-chain": "bsc",
    "binance": "bsc",
    "bnb": "bsc",
}


def get_chain(blockchain: str) -> ChainInfo:
    """Look up chain metadata by name or common alias.

    Raises:
        ValidationError: If the chain is not supported
    """
    key = (blockchain or "").strip().lower()
    key = ALIASES.get(key, key)
    chain = CHAINS.get(key)
    if chain is None:
        raise ValidationError(unsupported_blockchain(blockchain))
    return chain


def native_currency(blockchain: str) -> str:
    return get_chain(blockchain).native_currency
