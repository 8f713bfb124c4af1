"""Tests for loading account snapshots from JSON."""

import json
from decimal import Decimal

import pytest

from stoic.config import PricingSettings
from stoic.exceptions import SnapshotError
from stoic.ingest import load_snapshot, parse_snapshot
from stoic.models import DAY_MS, LedgerCategory


@pytest.fixture
def document(t0: int) -> dict:
    return {
        "generated_at": t0 + 5 * DAY_MS,
        "balance_btc": "1.25",
        "prices": [{"symbol": "BTCUSDT", "price": "60000"}],
        "klines": [[t0, "50000", "51000", "49000", "50500", "10"]],
        "deposits": [{"coin": "BTC", "amount": "1", "insertTime": t0 + 2 * DAY_MS}],
        "withdrawals": [],
        "transfers_in": [{"asset": "USDT", "amount": "100", "timestamp": t0 + DAY_MS}],
        "transfers_out": [],
        "income": [{"incomeType": "FUNDING_FEE", "income": "5", "asset": "USDT", "time": t0 + 3 * DAY_MS}],
    }


class TestParseSnapshot:
    def test_full_document(self, document: dict, t0: int) -> None:
        snapshot = parse_snapshot(document)

        assert snapshot.generated_at_ms == t0 + 5 * DAY_MS
        assert snapshot.balance_btc == Decimal("1.25")
        assert snapshot.spot_prices == {"BTCUSDT": Decimal("60000")}
        assert len(snapshot.price_samples) == 1
        assert snapshot.event_count == 3

    def test_events_sorted_by_time(self, document: dict) -> None:
        snapshot = parse_snapshot(document)
        assert [e.category for e in snapshot.events] == [
            LedgerCategory.TRANSFER_IN,
            LedgerCategory.DEPOSIT,
            LedgerCategory.FUNDING_FEE,
        ]

    def test_optional_sections_default_empty(self) -> None:
        snapshot = parse_snapshot({"balance_btc": 0})
        assert snapshot.events == ()
        assert snapshot.price_samples == ()
        assert snapshot.spot_prices == {}
        assert snapshot.generated_at_ms is None

    def test_missing_balance_raises(self, document: dict) -> None:
        del document["balance_btc"]
        with pytest.raises(SnapshotError, match="missing field 'balance_btc' and no wallet balances"):
            parse_snapshot(document)

    def test_section_must_be_list(self, document: dict) -> None:
        document["deposits"] = {"coin": "BTC"}
        with pytest.raises(SnapshotError, match="deposits: expected a list"):
            parse_snapshot(document)

    def test_top_level_must_be_object(self) -> None:
        with pytest.raises(SnapshotError):
            parse_snapshot([1, 2, 3])

    @pytest.mark.parametrize(
        "section, row",
        [("withdrawals", ["USDT", "5"]), ("transfers_in", "oops"), ("transfers_out", 42)],
    )
    def test_non_object_rows_raise_snapshot_error(self, document: dict, section: str, row) -> None:
        document[section] = [row]
        with pytest.raises(SnapshotError, match="expected an object"):
            parse_snapshot(document)

    def test_other_income_types_kept_apart(self, document: dict, t0: int) -> None:
        document["income"].append({"incomeType": "INSURANCE_CLEAR", "income": "2", "asset": "USDT", "time": t0})
        snapshot = parse_snapshot(document)
        assert snapshot.other_income == {"INSURANCE_CLEAR": Decimal("2")}
        assert snapshot.event_count == 3


class TestLoadSnapshot:
    def test_reads_file(self, tmp_path, document: dict) -> None:
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps(document), encoding="utf-8")
        snapshot = load_snapshot(path)
        assert snapshot.balance_btc == Decimal("1.25")

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(SnapshotError, match="cannot read snapshot"):
            load_snapshot(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SnapshotError, match="invalid JSON"):
            load_snapshot(path)


@pytest.fixture
def wallet_document() -> dict:
    """Wallet sections valued at BTCUSDT 50000 and ETHBTC 0.05."""
    return {
        "prices": {"BTCUSDT": "50000", "ETHBTC": "0.05"},
        "futures_balances": [{"asset": "BTC", "balance": "0.1"}, {"asset": "USDT", "balance": "1000"}],
        "futures_account": {"totalUnrealizedProfit": "-500"},
        "spot_balances": [
            {"asset": "ETH", "free": "1.5", "locked": "0.5"},
            {"asset": "USDT", "free": "5000", "locked": "0"},
            {"asset": "DOGE", "free": "100", "locked": "0"},
        ],
    }


class TestWalletValuation:
    """Balance derived from futures and spot wallets when balance_btc is absent."""

    def test_balance_valued_from_wallets(self, wallet_document: dict) -> None:
        snapshot = parse_snapshot(wallet_document)
        # futures 0.1 BTC + (1000 - 500) / 50000 + spot 2 * 0.05 + 5000 / 50000; DOGE has no price
        assert snapshot.balance_btc == Decimal("0.31")

    def test_explicit_balance_wins(self, wallet_document: dict) -> None:
        wallet_document["balance_btc"] = "2"
        assert parse_snapshot(wallet_document).balance_btc == Decimal("2")

    def test_futures_only(self) -> None:
        snapshot = parse_snapshot(
            {
                "prices": {"BTCUSDT": "40000"},
                "futures_balances": [{"asset": "USDT", "balance": "400"}],
            }
        )
        assert snapshot.balance_btc == Decimal("0.01")

    def test_futures_account_must_be_object(self, wallet_document: dict) -> None:
        wallet_document["futures_account"] = ["-500"]
        with pytest.raises(SnapshotError, match="futures_account: expected an object"):
            parse_snapshot(wallet_document)

    def test_custom_quote_asset(self) -> None:
        snapshot = parse_snapshot(
            {"prices": {"BTCUSDC": "50000"}, "futures_balances": [{"asset": "USDC", "balance": "500"}]},
            PricingSettings(quote_asset="USDC"),
        )
        assert snapshot.balance_btc == Decimal("0.01")
