"""Historical and spot price lookups for BTC valuation.

The index is built once per run from daily BTC candles and a snapshot of
spot tickers, then queried for every ledger event. It never mutates after
construction.

Conversion order for ``convert`` (first match wins):
  1. BTC -> identity
  2. stable asset -> amount / BTCUSDT
  3. <ASSET>BTC spot pair -> amount * rate
  4. <ASSET>USDT and BTCUSDT -> amount * asset_usdt / btc_usdt
  5. otherwise unconvertible (0)
"""

from bisect import bisect_left
from collections.abc import Iterable, Mapping
from decimal import Decimal

from stoic.config import PricingSettings
from stoic.logging import get_logger
from stoic.models import ZERO, PriceSample

logger = get_logger(__name__)


class PriceIndex:
    """Immutable daily price series plus a live symbol -> price map.

    Args:
        samples: Daily BTC candles in any order. Duplicate timestamps keep
            the first occurrence.
        spot_prices: Ticker symbol (e.g. "ETHUSDT") to last price.
        settings: Base/quote asset names and the stable asset list.
    """

    def __init__(
        self,
        samples: Iterable[PriceSample],
        spot_prices: Mapping[str, Decimal],
        settings: PricingSettings | None = None,
    ) -> None:
        settings = settings or PricingSettings()
        self._base = settings.base_asset.upper()
        self._quote = settings.quote_asset.upper()
        self._stables = frozenset(a.upper() for a in settings.stable_assets)

        ordered: list[PriceSample] = []
        duplicates = 0
        for sample in sorted(samples, key=lambda s: s.timestamp_ms):
            if ordered and ordered[-1].timestamp_ms == sample.timestamp_ms:
                duplicates += 1
                continue
            ordered.append(sample)
        if duplicates:
            logger.warning("duplicate_price_samples_dropped", count=duplicates)

        self._samples: tuple[PriceSample, ...] = tuple(ordered)
        self._timestamps: tuple[int, ...] = tuple(s.timestamp_ms for s in ordered)
        self._spot: dict[str, Decimal] = {k.upper(): v for k, v in spot_prices.items()}

    @property
    def samples(self) -> tuple[PriceSample, ...]:
        return self._samples

    @property
    def base_asset(self) -> str:
        return self._base

    @property
    def quote_asset(self) -> str:
        return self._quote

    @property
    def btc_spot(self) -> Decimal | None:
        """Current base/quote price (BTCUSDT by default)."""
        return self.spot(f"{self._base}{self._quote}")

    def spot(self, symbol: str) -> Decimal | None:
        """Return the spot price for a ticker symbol, or None if unknown or non-positive."""
        price = self._spot.get(symbol.upper())
        if price is None or price <= ZERO:
            return None
        return price

    def price_at(self, timestamp_ms: int) -> Decimal | None:
        """Close of the sample nearest in time to ``timestamp_ms``.

        Binary search over the sorted timestamps. When two samples are
        equally distant, the earlier one wins.

        Returns:
            Close price, or None when the index holds no samples.
        """
        if not self._timestamps:
            return None

        idx = bisect_left(self._timestamps, timestamp_ms)
        if idx == 0:
            return self._samples[0].close
        if idx == len(self._timestamps):
            return self._samples[-1].close

        before = timestamp_ms - self._timestamps[idx - 1]
        after = self._timestamps[idx] - timestamp_ms
        if before <= after:
            return self._samples[idx - 1].close
        return self._samples[idx].close

    def historical_btc_price(self, timestamp_ms: int) -> Decimal | None:
        """Historical BTC price at a time, falling back to the current spot price."""
        price = self.price_at(timestamp_ms)
        if price is not None and price > ZERO:
            return price
        return self.btc_spot

    def convert_or_none(self, asset: str, amount: Decimal) -> Decimal | None:
        """Convert ``amount`` of ``asset`` to BTC at spot rates.

        Returns:
            BTC amount, or None when no conversion path exists.
        """
        if amount == ZERO:
            return ZERO

        asset = asset.upper()
        if asset == self._base:
            return amount

        btc_quote = self.btc_spot
        if asset in self._stables:
            return amount / btc_quote if btc_quote is not None else None

        direct = self.spot(f"{asset}{self._base}")
        if direct is not None:
            return amount * direct

        asset_quote = self.spot(f"{asset}{self._quote}")
        if asset_quote is not None and btc_quote is not None:
            return amount * asset_quote / btc_quote

        return None

    def convert(self, asset: str, amount: Decimal) -> Decimal:
        """Convert to BTC at spot rates; unconvertible assets contribute 0."""
        converted = self.convert_or_none(asset, amount)
        return converted if converted is not None else ZERO

    def __len__(self) -> int:
        return len(self._samples)
