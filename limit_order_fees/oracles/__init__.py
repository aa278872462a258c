from .dexscreener import fetch_price_usd

__all__ = ["fetch_price_usd"]
