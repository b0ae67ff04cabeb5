"""Etherscan API v2 integration.

One endpoint serves every supported EVM chain; the chain is picked with the
``chainid`` parameter. Responses are converted into RawChainTransaction
records and merged, but otherwise left raw: spam filtering and fee
synthesis belong to the normalizer.
"""

import logging
import os
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Optional

import httpx

from ledgerkit.domain.chains import ChainInfo, get_chain
from ledgerkit.domain.entities import ChainStatus, RawChainTransaction, TokenType, TransferDirection
from ledgerkit.domain.errors import ChainSourceError, ValidationError, unsupported_currency
from ledgerkit.domain.normalizer import merge_duplicates
from ledgerkit.integrations.base import ChainDataSource, FetchOptions, NativeBalance
from ledgerkit.utils.date_parser import from_unix_timestamp

logger = logging.getLogger(__name__)

API_KEY_ENV_VAR = "ETHERSCAN_API_KEY"
V2_API_URL = "https://api.etherscan.io/v2/api"

WEI_PER_ETHER = Decimal(10) ** 18
GWEI = 10**9
LATEST_BLOCK = 99999999
# Etherscan refuses page * offset above this
MAX_RESULT_WINDOW = 10000

# Older BSC blocks report a zero gas price
BSC_GAS_PRICE_TIERS = (
    (10_000_000, 20 * GWEI),
    (20_000_000, 10 * GWEI),
    (35_000_000, 5 * GWEI),
)
BSC_DEFAULT_GAS_PRICE = 3 * GWEI


def _to_int(value: Any) -> int:
    if value in (None, ""):
        return 0
    text = str(value)
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)


def wei_to_native(value: Any) -> Decimal:
    return Decimal(_to_int(value)) / WEI_PER_ETHER


def token_amount(value: Any, decimals: Any) -> Decimal:
    return Decimal(_to_int(value)).scaleb(-_to_int(decimals or 0))


def estimate_bsc_gas_price(block_number: int) -> int:
    """Return a typical BSC gas price in wei for a block height."""
    for ceiling, price in BSC_GAS_PRICE_TIERS:
        if block_number < ceiling:
            return price
    return BSC_DEFAULT_GAS_PRICE


def estimate_block_number(moment: datetime, chain: ChainInfo) -> int:
    """Approximate the block height at a moment from the chain's block time."""
    elapsed = (moment - chain.reference_date).total_seconds()
    return max(0, int(elapsed // chain.seconds_per_block))


def _gas_fee(raw: dict[str, Any], chain: ChainInfo) -> tuple[int, Decimal]:
    gas_used = _to_int(raw.get("gasUsed"))
    gas_price = _to_int(raw.get("gasPrice"))
    if gas_price == 0 and chain.name == "bsc" and gas_used > 0:
        gas_price = estimate_bsc_gas_price(_to_int(raw.get("blockNumber")))
    return gas_used, Decimal(gas_used * gas_price) / WEI_PER_ETHER


def _direction(raw: dict[str, Any], address: str) -> TransferDirection:
    if (raw.get("to") or "").lower() == address.lower():
        return TransferDirection.INCOMING
    return TransferDirection.OUTGOING


def convert_normal_transaction(raw: dict[str, Any], chain: ChainInfo, address: str) -> RawChainTransaction:
    """Convert a ``txlist`` entry.

    Pre-Byzantium transactions have an empty receipt status; they count as
    successful unless flagged with isError.
    """
    succeeded = raw.get("isError", "0") == "0" and raw.get("txreceipt_status", "1") in ("1", "")
    gas_used, gas_fee = _gas_fee(raw, chain)
    return RawChainTransaction(
        hash=raw["hash"],
        timestamp=from_unix_timestamp(_to_int(raw.get("timeStamp"))),
        from_address=raw.get("from") or "",
        to_address=raw.get("to") or raw.get("contractAddress") or "",
        amount=wei_to_native(raw.get("value")),
        currency=chain.native_currency,
        direction=_direction(raw, address),
        status=ChainStatus.SUCCESS if succeeded else ChainStatus.FAILED,
        gas_used=gas_used,
        gas_fee=gas_fee,
        token_type=TokenType.NATIVE,
        block_number=_to_int(raw.get("blockNumber")),
        blockchain=chain.name,
    )


def convert_internal_transaction(
    raw: dict[str, Any], chain: ChainInfo, address: str
) -> RawChainTransaction:
    """Convert a ``txlistinternal`` entry. The wallet pays no gas for these."""
    from_address = raw.get("from") or ""
    succeeded = raw.get("isError", "0") in ("0", "")
    trace_id = raw.get("traceId")
    return RawChainTransaction(
        hash=raw["hash"],
        timestamp=from_unix_timestamp(_to_int(raw.get("timeStamp"))),
        from_address=from_address,
        to_address=raw.get("to") or "",
        amount=wei_to_native(raw.get("value")),
        currency=chain.native_currency,
        direction=_direction(raw, address),
        status=ChainStatus.SUCCESS if succeeded else ChainStatus.FAILED,
        gas_used=_to_int(raw.get("gasUsed")),
        token_type=TokenType.NATIVE,
        is_internal=True,
        block_number=_to_int(raw.get("blockNumber")),
        blockchain=chain.name,
        description=f"Internal transaction from contract {from_address[:10]}...",
        internal_id=f"{raw['hash']}-internal-{trace_id}" if trace_id else None,
    )


def convert_token_transfer(raw: dict[str, Any], chain: ChainInfo, address: str) -> RawChainTransaction:
    """Convert a ``tokentx`` entry."""
    gas_used, gas_fee = _gas_fee(raw, chain)
    return RawChainTransaction(
        hash=raw["hash"],
        timestamp=from_unix_timestamp(_to_int(raw.get("timeStamp"))),
        from_address=raw.get("from") or "",
        to_address=raw.get("to") or "",
        amount=token_amount(raw.get("value"), raw.get("tokenDecimal")),
        currency=(raw.get("tokenSymbol") or "").upper(),
        direction=_direction(raw, address),
        gas_used=gas_used,
        gas_fee=gas_fee,
        token_type=TokenType.BEP20 if chain.name == "bsc" else TokenType.ERC20,
        block_number=_to_int(raw.get("blockNumber")),
        contract_address=(raw.get("contractAddress") or "").lower() or None,
        blockchain=chain.name,
    )


class EtherscanClient(ChainDataSource):
    """Chain data source backed by the Etherscan v2 API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        base_url: str = V2_API_URL,
        timeout: float = 15.0,
    ):
        """Create a client.

        Args:
            api_key: Etherscan API key, defaults to ETHERSCAN_API_KEY
            client: Preconfigured httpx client, mainly for tests
            base_url: API endpoint
            timeout: Request timeout in seconds when creating a client
        """
        self.api_key = api_key if api_key is not None else os.environ.get(API_KEY_ENV_VAR)
        self.base_url = base_url
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "EtherscanClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, chain: ChainInfo, params: dict[str, Any]) -> Any:
        """Call the API and return its ``result`` field.

        Raises:
            ChainSourceError: On transport errors or an error status
        """
        action = params.get("action")
        query = {"chainid": str(chain.chain_id), "module": "account", **params}
        if self.api_key:
            query["apikey"] = self.api_key

        try:
            response = self._client.get(self.base_url, params=query)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ChainSourceError(
                f"Etherscan returned HTTP {e.response.status_code}", blockchain=chain.name, action=action
            ) from e
        except httpx.HTTPError as e:
            raise ChainSourceError(f"Network error: {e}", blockchain=chain.name, action=action) from e
        except ValueError as e:
            raise ChainSourceError("Etherscan returned invalid JSON", blockchain=chain.name, action=action) from e

        if str(data.get("status")) == "0":
            message = str(data.get("message", ""))
            result = data.get("result")
            if "no transactions" in message.lower():
                return []
            detail = f"{message}: {result}" if isinstance(result, str) and result else message
            raise ChainSourceError(f"Etherscan API error: {detail}", blockchain=chain.name, action=action)
        return data.get("result", [])

    def _fetch_pages(
        self, chain: ChainInfo, action: str, address: str, start_block: int, end_block: int, limit: int
    ) -> list[dict[str, Any]]:
        offset = min(chain.page_size, MAX_RESULT_WINDOW)
        results: list[dict[str, Any]] = []
        page = 1
        while len(results) < limit and page * offset <= MAX_RESULT_WINDOW:
            batch = self._request(
                chain,
                {
                    "action": action,
                    "address": address,
                    "startblock": start_block,
                    "endblock": end_block,
                    "page": page,
                    "offset": offset,
                    "sort": "desc",
                },
            )
            if not isinstance(batch, list):
                raise ChainSourceError(
                    f"Unexpected {action} response", blockchain=chain.name, action=action
                )
            results.extend(batch)
            if len(batch) < offset:
                break
            page += 1
        return results[:limit]

    def get_transaction_history(
        self, address: str, blockchain: str, options: FetchOptions = FetchOptions()
    ) -> list[RawChainTransaction]:
        """Fetch normal, internal and token transactions for an address.

        Block bounds are estimated from the date range with a one day margin,
        then results are filtered on their exact timestamps.

        Raises:
            ChainSourceError: If any request fails
            ValidationError: If the chain or currency is not supported
        """
        chain = get_chain(blockchain)
        currency = options.currency.upper() if options.currency else None
        if currency and currency not in chain.supported_currencies:
            raise ValidationError(unsupported_currency(currency, chain.name))
        margin = timedelta(days=1)
        start_block = 0
        end_block = LATEST_BLOCK
        if options.start_date:
            start_block = estimate_block_number(options.start_date - margin, chain)
        if options.end_date:
            end_block = estimate_block_number(options.end_date + margin, chain)

        wants_native = currency is None or currency == chain.native_currency
        wants_tokens = currency is None or currency != chain.native_currency
        fetched: list[RawChainTransaction] = []
        if wants_native:
            for raw in self._fetch_pages(chain, "txlist", address, start_block, end_block, options.limit):
                fetched.append(convert_normal_transaction(raw, chain, address))
            for raw in self._fetch_pages(chain, "txlistinternal", address, start_block, end_block, options.limit):
                fetched.append(convert_internal_transaction(raw, chain, address))
        if wants_tokens:
            for raw in self._fetch_pages(chain, "tokentx", address, start_block, end_block, options.limit):
                fetched.append(convert_token_transfer(raw, chain, address))

        transactions = merge_duplicates(fetched)
        if options.start_date:
            transactions = [tx for tx in transactions if tx.timestamp >= options.start_date]
        if options.end_date:
            transactions = [tx for tx in transactions if tx.timestamp <= options.end_date]
        if currency:
            transactions = [tx for tx in transactions if tx.currency == currency]

        transactions.sort(key=lambda tx: (tx.timestamp, tx.hash), reverse=True)
        logger.info(
            "Fetched %d %s transactions for %s (%d before filtering)",
            len(transactions),
            chain.name,
            address,
            len(fetched),
        )
        return transactions[: options.limit]

    def get_native_balance(self, address: str, blockchain: str) -> NativeBalance:
        try:
            chain = get_chain(blockchain)
        except ValidationError as e:
            return NativeBalance(balance=None, currency="", is_live=False, error=str(e))
        try:
            result = self._request(chain, {"action": "balance", "address": address, "tag": "latest"})
            return NativeBalance(balance=wei_to_native(result), currency=chain.native_currency, is_live=True)
        except (ChainSourceError, ValueError) as e:
            logger.warning("Could not fetch %s balance for %s: %s", chain.native_currency, address, e)
            return NativeBalance(balance=None, currency=chain.native_currency, is_live=False, error=str(e))
