from __future__ import annotations


class LimitOrderFeesError(Exception):
    """Base class for errors raised by :mod:`limit_order_fees`."""


class InvalidRequestError(LimitOrderFeesError, ValueError):
    """Raised when a forecast request is rejected before any external call."""


class OrderDecodeError(LimitOrderFeesError):
    """Raised when an order account buffer does not match the expected layout."""

    def __init__(self, account_key: str, message: str) -> None:
        super().__init__(f"{account_key}: {message}")
        self.account_key = account_key


class UpstreamFetchError(LimitOrderFeesError):
    """Raised when an account scan against the RPC endpoint fails."""


class PriceUnavailableError(LimitOrderFeesError):
    """Raised when the price oracle cannot be queried."""


__all__ = [
    "LimitOrderFeesError",
    "InvalidRequestError",
    "OrderDecodeError",
    "UpstreamFetchError",
    "PriceUnavailableError",
]
