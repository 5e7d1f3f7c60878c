#!/usr/bin/env python3
"""
Signal Desk CLI: backtest | forecast | sweep | screener
Usage:
  python main.py [--config config.yaml] [--json] backtest AAPL [--days 180] [--resolution daily]
  python main.py forecast AAPL [--entry-date 2025-03-03 | --bars-ago 20] [--method fair --fair 210]
  python main.py sweep AAPL [MSFT ...] [--start 120 --end 20 --step 5]
  python main.py screener AAPL:Technology MSFT:Technology XOM:Energy [--deadline 30]
"""

from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from signal_desk.backtesting.record import JsonRunStore, run_backtest as simulate
from signal_desk.core.config import Config, load_config
from signal_desk.core.errors import SignalDeskError
from signal_desk.core.logger import setup_logging
from signal_desk.core.params import SweepWindow
from signal_desk.core.types import Resolution
from signal_desk.forecast.batch import batch_sweep
from signal_desk.forecast.evaluator import evaluate_forecast, rolling_sweep, scores_from_candles
from signal_desk.providers.base import CandleProvider, StaticValuationOracle
from signal_desk.providers.cache import TTLCache
from signal_desk.providers.candles import CsvCandleProvider, YahooChartProvider
from signal_desk.screener.ranker import Candidate, Screener
from signal_desk.utils.resolutions import parse_resolution

logger = logging.getLogger("signal_desk")


def build_provider(config: Config) -> CandleProvider:
    if config.provider == "yahoo":
        return YahooChartProvider(cache=TTLCache(), ttl_seconds=config.cache_ttl_seconds)
    return CsvCandleProvider(config.data_dir)


def _emit(payload: dict, as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, indent=2, default=str))


def run_backtest(args, config: Config) -> int:
    """Simulate the EMA/RSI/ATR long strategy on one ticker and persist the run."""
    run = simulate(
        args.ticker,
        build_provider(config),
        params=config.simulator_params(),
        resolution=parse_resolution(args.resolution),
        lookback_days=args.days or config.lookback_days,
        store=JsonRunStore(config.runs_dir),
    )
    if args.json:
        _emit(run.to_dict(include_trades=True), True)
        return 0
    m = run.result.metrics
    print("\n--- Backtest Results ---")
    print(f"Run: {run.id} ({run.strategy_name}) persisted={run.persisted}")
    print(f"Trades: {m.trade_count} (wins: {m.wins}, losses: {m.losses})")
    print(f"Win rate: {m.win_rate:.1f}%")
    print(f"Avg R: {m.avg_r_multiple:.2f}")
    print(f"Total PnL: {m.total_pnl:.2f}")
    print(f"Max drawdown: {m.max_drawdown_pct * 100:.2f}%")
    if run.result.open_position is not None:
        pos = run.result.open_position
        print(f"Open position: entry {pos.entry_price:.2f} stop {pos.stop_price:.2f}")
    return 0


def run_forecast(args, config: Config) -> int:
    provider = build_provider(config)
    ticker = args.ticker.strip().upper()
    params = config.forecast_params(
        horizon_bars=args.horizon,
        method=args.method,
        k=args.k,
        direction=args.direction,
        entry_date=args.entry_date,
        entry_bars_ago=args.bars_ago,
        end_date=args.end_date,
    )
    df = provider.get_candles(ticker, Resolution.DAILY, args.days)
    if df.empty:
        logger.error("No daily candles for %s", ticker)
        return 1
    daily = weekly = None
    if params.direction == "auto":
        daily, weekly = scores_from_candles(df)
    result = evaluate_forecast(df, params, fair_value=args.fair, daily_score=daily, weekly_score=weekly)
    if args.json:
        _emit(result.to_dict(), True)
        return 0
    print(f"\n--- Forecast {ticker} ({result.method}, {result.direction}) ---")
    print(f"Entry {result.entry_date} @ {result.entry_price:.2f} -> target {result.target_price:.2f}")
    print(f"Actual {result.end_date} @ {result.actual_price:.2f} after {result.bars_held} bars")
    pct = f"{result.pct_error:.2f}%" if result.pct_error is not None else "n/a"
    print(f"Error: {result.abs_error:.2f} ({pct}) hit={result.hit_within_tolerance}")
    print(f"MFE {result.max_favorable_excursion:.2f} / MAE {result.max_adverse_excursion:.2f}")
    if result.fallback_note:
        print(f"Note: {result.fallback_note}")
    return 0


def run_sweep(args, config: Config) -> int:
    provider = build_provider(config)
    params = config.forecast_params(horizon_bars=args.horizon, method=args.method, k=args.k, direction=args.direction)
    window = SweepWindow(
        args.start or config.sweep_start,
        args.end or config.sweep_end,
        args.step or config.sweep_step,
    )
    oracle = StaticValuationOracle(json.loads(args.fair_values)) if args.fair_values else None
    if len(args.tickers) == 1:
        ticker = args.tickers[0].strip().upper()
        df = provider.get_candles(ticker, Resolution.DAILY, args.days)
        if df.empty:
            logger.error("No daily candles for %s", ticker)
            return 1
        daily = weekly = None
        if params.direction == "auto":
            daily, weekly = scores_from_candles(df)
        fair = oracle.get_fair_value(ticker) if oracle else None
        result = rolling_sweep(df, params, window, fair_value=fair, daily_score=daily, weekly_score=weekly)
        if args.json:
            _emit(result.to_dict(), True)
            return 0
        mape = f"{result.mape:.2f}%" if result.mape is not None else "n/a"
        print(f"\n--- Sweep {ticker} ---")
        print(f"Entries: {result.count}  hits: {result.hits}  hit rate: {result.hit_rate:.1f}%")
        print(f"MAE: {result.mae:.2f}  MAPE: {mape}")
        return 0

    batch = batch_sweep(
        args.tickers, provider, params, window, oracle=oracle,
        max_workers=config.max_workers, lookback_days=args.days,
    )
    if args.json:
        _emit(batch.to_dict(), True)
        return 0
    print("\n--- Batch Sweep ---")
    for ticker, r in sorted(batch.results.items()):
        print(f"{ticker:<8} entries={r.count:<4} hit rate={r.hit_rate:5.1f}%  mae={r.mae:.2f}")
    for d in batch.dropped:
        print(f"{d['ticker']:<8} dropped: {d['reason']}")
    return 0


def _parse_candidate(raw: str) -> Candidate:
    ticker, _, sector = raw.partition(":")
    return Candidate(ticker.strip().upper(), sector.strip() or None)


def run_screener(args, config: Config) -> int:
    oracle = StaticValuationOracle(json.loads(args.fair_values)) if args.fair_values else None
    screener = Screener(build_provider(config), oracle=oracle, params=config.screener_params())
    deadline = args.deadline if args.deadline is not None else config.screener_deadline
    result = screener.run([_parse_candidate(c) for c in args.candidates], as_of=args.as_of, deadline=deadline)
    if args.json:
        _emit(result.to_dict(), True)
        return 0
    print("\n--- Screener ---")
    for i, it in enumerate(result.items, 1):
        est = f"{it.est_price:.2f}" if it.est_price is not None else "n/a"
        print(f"{i:>3}. {it.ticker:<8} z={it.z_score:+.2f} score={it.score:+.1f} {it.summary:<11} est={est}")
    for d in result.dropped:
        print(f"     {d.ticker:<8} dropped: {d.reason}")
    return 0


def _add_forecast_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--horizon", type=int, default=None, help="Horizon in bars")
    p.add_argument("--method", choices=["atr_k", "fair"], default=None)
    p.add_argument("--k", type=float, default=None, help="ATR multiple for atr_k")
    p.add_argument("--direction", choices=["up", "down", "auto"], default=None)
    p.add_argument("--days", type=int, default=365, help="Calendar days of daily candles to load")


def main() -> int:
    parser = argparse.ArgumentParser(description="Signal Desk CLI")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of a summary")
    sub = parser.add_subparsers(dest="mode", required=True)

    p = sub.add_parser("backtest", help="Run the EMA/RSI/ATR simulator on one ticker")
    p.add_argument("ticker")
    p.add_argument("--days", type=int, default=None, help="Lookback in calendar days (30-365)")
    p.add_argument("--resolution", default="daily", help="daily | intraday")

    p = sub.add_parser("forecast", help="Evaluate one forecast")
    p.add_argument("ticker")
    _add_forecast_options(p)
    p.add_argument("--entry-date", default=None)
    p.add_argument("--bars-ago", type=int, default=None)
    p.add_argument("--end-date", default=None)
    p.add_argument("--fair", type=float, default=None, help="Fair value for method=fair")

    p = sub.add_parser("sweep", help="Rolling forecast sweep for one or more tickers")
    p.add_argument("tickers", nargs="+")
    _add_forecast_options(p)
    p.add_argument("--start", type=int, default=None)
    p.add_argument("--end", type=int, default=None)
    p.add_argument("--step", type=int, default=None)
    p.add_argument("--fair-values", default=None, help='JSON mapping, e.g. \'{"AAPL": 210}\'')

    p = sub.add_parser("screener", help="Rank candidates (TICKER or TICKER:Sector)")
    p.add_argument("candidates", nargs="+")
    p.add_argument("--as-of", default=None, help="Date for calendar checks (default: today)")
    p.add_argument("--deadline", type=float, default=None, help="Time limit in seconds for the whole run")
    p.add_argument("--fair-values", default=None, help="JSON mapping ticker -> fair value")

    args = parser.parse_args()
    config = load_config(args.config, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    runners = {
        "backtest": run_backtest,
        "forecast": run_forecast,
        "sweep": run_sweep,
        "screener": run_screener,
    }
    try:
        return runners[args.mode](args, config)
    except SignalDeskError as e:
        logger.error("%s failed: %s", args.mode, e)
        return 1


if __name__ == "__main__":
    exit(main())
