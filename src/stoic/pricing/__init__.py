"""Price lookups -- historical BTC candles and spot cross-rates."""

from stoic.pricing.index import PriceIndex

__all__ = ["PriceIndex"]
