"""External data sources used by ledgerkit."""

from ledgerkit.integrations.base import ChainDataSource, FetchOptions, NativeBalance

__all__ = ["ChainDataSource", "FetchOptions", "NativeBalance"]
