"""Integration tests for run_analysis over a parsed snapshot.

The snapshot encodes the worked example: 1 BTC deposited, then daily P&L of
+500, -1000 and +1500 USDT at a flat 50000 BTC price, i.e. +0.01, -0.02 and
+0.03 BTC, ending on a 1.02 BTC balance.
"""

import json
from decimal import Decimal

import pytest

from stoic.config import AnalysisSettings, AppSettings
from stoic.ingest import parse_snapshot
from stoic.models import DAY_MS
from stoic.runner import analysis_period_start, run_analysis

HOUR_MS = 3_600_000


@pytest.fixture
def snapshot_document(t0: int) -> dict:
    income = [
        {"incomeType": "REALIZED_PNL", "income": "500", "asset": "USDT", "time": t0 + DAY_MS + HOUR_MS},
        {"incomeType": "REALIZED_PNL", "income": "-1000", "asset": "USDT", "time": t0 + 2 * DAY_MS + HOUR_MS},
        {"incomeType": "REALIZED_PNL", "income": "1500", "asset": "USDT", "time": t0 + 3 * DAY_MS + HOUR_MS},
    ]
    return {
        "generated_at": t0 + 10 * DAY_MS,
        "balance_btc": "1.02",
        "prices": [{"symbol": "BTCUSDT", "price": "50000"}],
        "klines": [[t0 + i * DAY_MS, "50000", "50000", "50000", "50000", "1"] for i in range(10)],
        "deposits": [
            {"coin": "BTC", "amount": "1", "insertTime": t0},
            {"coin": "DOGE", "amount": "1000", "insertTime": t0},
        ],
        "income": income,
    }


@pytest.fixture
def snapshot(snapshot_document: dict):
    return parse_snapshot(snapshot_document)


class TestRunAnalysis:
    def test_worked_example_end_to_end(self, snapshot, mock_settings: AppSettings, t0: int) -> None:
        report = run_analysis(snapshot, mock_settings)

        assert [b.sum_btc for b in report.daily] == [Decimal("0.01"), Decimal("-0.02"), Decimal("0.03")]
        assert [p.equity_btc for p in report.equity] == [
            Decimal("1.00"),
            Decimal("1.01"),
            Decimal("0.99"),
            Decimal("1.02"),
        ]
        assert report.risk.max_drawdown_btc == Decimal("-0.02")
        assert report.risk.win_rate == Decimal(2) / Decimal(3)
        assert report.max_drawdown is not None
        assert report.max_drawdown.drawdown_btc == Decimal("-0.02")

        assert report.flows.net_external_flow_btc == Decimal("1")
        assert report.flows.robot_pnl_btc == Decimal("0.02")
        assert report.flows.roi == Decimal("0.02")
        assert report.assessment.verdict == "neutral"

        assert report.unconvertible_count == 1
        assert report.income_by_category == {"REALIZED_PNL": Decimal("1000")}
        assert report.btc_price_usd == Decimal("50000")
        assert len(report.monthly) == 1
        assert len(report.scenarios) == 3

    def test_weekly_buckets_anchor_to_period_start(self, snapshot, mock_settings: AppSettings, t0: int) -> None:
        report = run_analysis(snapshot, mock_settings)
        period_start = t0 + 10 * DAY_MS - 180 * DAY_MS
        assert report.period_start_ms == period_start
        assert all((b.period_start_ms - period_start) % (7 * DAY_MS) == 0 for b in report.weekly)

    def test_since_filter_restricts_pnl(self, snapshot, t0: int) -> None:
        settings = AppSettings(analysis=AnalysisSettings(since_ms=t0 + 2 * DAY_MS))
        report = run_analysis(snapshot, settings)
        assert [b.sum_btc for b in report.daily] == [Decimal("-0.02"), Decimal("0.03")]
        # capital flows still cover the whole snapshot
        assert report.flows.total_deposits_btc == Decimal("1")

    def test_btc_price_override(self, snapshot, mock_settings: AppSettings) -> None:
        settings = mock_settings.model_copy(
            update={"forecast": mock_settings.forecast.model_copy(update={"btc_price_usd": Decimal("70000")})}
        )
        report = run_analysis(snapshot, settings)
        assert report.btc_price_usd == Decimal("70000")
        assert report.scenarios[1].compound_final_usd is not None

    def test_income_breakdown_includes_non_pnl_types(
        self, snapshot_document: dict, mock_settings: AppSettings, t0: int
    ) -> None:
        snapshot_document["income"].append(
            {"incomeType": "REFERRAL_KICKBACK", "income": "3", "asset": "USDT", "time": t0 + DAY_MS}
        )
        report = run_analysis(parse_snapshot(snapshot_document), mock_settings)

        assert report.income_by_category == {
            "REALIZED_PNL": Decimal("1000"),
            "REFERRAL_KICKBACK": Decimal("3"),
        }
        # kickbacks stay out of the daily P&L series
        assert [b.sum_btc for b in report.daily] == [Decimal("0.01"), Decimal("-0.02"), Decimal("0.03")]

    def test_empty_snapshot_renders_neutral_report(self, mock_settings: AppSettings) -> None:
        report = run_analysis(parse_snapshot({"balance_btc": "0"}), mock_settings)

        assert report.daily == ()
        assert report.weekly == ()
        assert report.monthly == ()
        assert report.equity == ()
        assert report.max_drawdown is None
        assert report.risk.sufficient_data is False
        assert report.forecast.avg_monthly_pnl_btc == Decimal("0")
        assert report.flows.roi is None
        assert report.assessment.verdict == "undetermined"
        assert report.btc_price_usd is None

    def test_report_is_json_serializable(self, snapshot, mock_settings: AppSettings) -> None:
        data = run_analysis(snapshot, mock_settings).to_dict()
        round_tripped = json.loads(json.dumps(data))
        assert round_tripped["risk"]["max_drawdown_btc"] == "-0.02"
        assert round_tripped["flows"]["roi"] == "0.02"
        assert [s["name"] for s in round_tripped["scenarios"]] == ["optimistic", "average", "pessimistic"]


class TestAnalysisPeriodStart:
    def test_explicit_since_wins(self, snapshot, t0: int) -> None:
        settings = AppSettings(analysis=AnalysisSettings(since_ms=t0))
        assert analysis_period_start(snapshot, settings) == t0

    def test_none_without_generation_time(self, mock_settings: AppSettings) -> None:
        assert analysis_period_start(parse_snapshot({"balance_btc": 1}), mock_settings) is None
