"""Chain data source interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ledgerkit.domain.entities import RawChainTransaction


@dataclass(frozen=True)
class FetchOptions:
    """Options for a transaction history request."""

    currency: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    limit: int = 5000


@dataclass(frozen=True)
class NativeBalance:
    """Live native-currency balance of an address."""

    balance: Optional[Decimal]
    currency: str
    is_live: bool
    error: Optional[str] = None


class ChainDataSource(ABC):
    """Source of raw on-chain transactions and live balances."""

    @abstractmethod
    def get_transaction_history(
        self, address: str, blockchain: str, options: FetchOptions = FetchOptions()
    ) -> list[RawChainTransaction]:
        """Fetch raw transactions involving an address.

        Raises:
            ChainSourceError: If the source cannot be queried
        """
        pass

    @abstractmethod
    def get_native_balance(self, address: str, blockchain: str) -> NativeBalance:
        """Fetch the live native balance.

        Failures are reported through is_live/error rather than raised.
        """
        pass
