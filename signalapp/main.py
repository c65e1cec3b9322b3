"""Command-line entry point.

Usage:
    python -m signalapp analyze BTC ETH
    python -m signalapp analyze --output analysis.json
    python -m signalapp monitor --interval 5
    python -m signalapp monitor --interval 1 --iterations 3
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import orjson

from signalapp.config import Settings, get_settings
from signalapp.engine_config import load_engine_config
from signalapp.services.analysis_service import AnalysisService, BatchResult, summarize
from signalcore.models.signal import AssetAnalysis

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="signalapp",
        description="Crypto trading signal engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m signalapp analyze BTC ETH SOL
  python -m signalapp monitor --interval 5
        """,
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to engine.yaml (default: SIGNAL_ENGINE_CONFIG_PATH)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Run one analysis pass and print JSON")
    analyze.add_argument("symbols", nargs="*", help="Asset symbols (default: configured list)")
    analyze.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Write JSON to this file instead of stdout",
    )

    monitor = sub.add_parser("monitor", help="Repeat analysis on a fixed interval")
    monitor.add_argument("symbols", nargs="*", help="Asset symbols (default: configured list)")
    monitor.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Minutes between passes (default: SIGNAL_MONITOR_INTERVAL_MINUTES)",
    )
    monitor.add_argument(
        "--iterations",
        type=int,
        default=None,
        help="Stop after this many passes (default: run until interrupted)",
    )
    return parser.parse_args(argv)


def render(result: BatchResult) -> bytes:
    """Render a batch as one JSON document keyed by symbol."""
    payload = {
        "analyses": {
            symbol: analysis.model_dump(mode="json")
            for symbol, analysis in result.analyses.items()
        },
        "errors": {symbol: str(error) for symbol, error in result.errors.items()},
    }
    return orjson.dumps(payload, option=orjson.OPT_INDENT_2)


async def cmd_analyze(
    service: AnalysisService, symbols: list[str], output: str | None = None
) -> BatchResult:
    result = await service.analyze_many(symbols)
    data = render(result)
    if output:
        with open(output, "wb") as f:
            f.write(data)
        logger.info("Wrote %d analyses to %s", len(result.analyses), output)
    else:
        sys.stdout.write(data.decode() + "\n")
    return result


def report_pass(result: BatchResult, settings: Settings) -> None:
    """Log buy/sell candidates and risk warnings for one monitor pass."""
    analyses: list[AssetAnalysis] = list(result.analyses.values())
    for a in analyses:
        if a.confidence >= settings.high_confidence and a.overall_signal.is_bullish:
            logger.info(
                "BUY candidate %s: %s conf=%d risk=%d (%s)",
                a.symbol, a.overall_signal.value, a.confidence, a.risk_score, a.regime.value,
            )
        elif a.confidence >= settings.high_confidence and a.overall_signal.is_bearish:
            logger.info(
                "SELL candidate %s: %s conf=%d risk=%d (%s)",
                a.symbol, a.overall_signal.value, a.confidence, a.risk_score, a.regime.value,
            )
        if a.crash_signal.is_crashing:
            logger.warning(
                "CRASH %s: severity=%s %s",
                a.symbol, a.crash_signal.severity.value, a.crash_signal.recommendation,
            )
        elif a.risk_score >= settings.high_risk:
            logger.warning("High risk %s: risk=%d", a.symbol, a.risk_score)

    summary = summarize(analyses, settings.high_risk)
    logger.info(
        "Pass complete: %d analyzed, %d failed, strong_buy=%d strong_sell=%d high_risk=%d crashing=%d",
        summary.total,
        len(result.errors),
        summary.strong_buy,
        summary.strong_sell,
        summary.high_risk,
        summary.crashing,
    )


async def cmd_monitor(
    service: AnalysisService,
    symbols: list[str],
    interval_minutes: float,
    iterations: int | None = None,
) -> int:
    """Run analysis passes until interrupted or ``iterations`` is reached."""
    passes = 0
    logger.info("Monitoring %s every %.1f min", ",".join(symbols), interval_minutes)
    while iterations is None or passes < iterations:
        result = await service.analyze_many(symbols)
        report_pass(result, service.settings)
        passes += 1
        if iterations is not None and passes >= iterations:
            break
        await asyncio.sleep(interval_minutes * 60)
    return passes


async def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    engine_config = load_engine_config(args.config or settings.engine_config_path)
    symbols = [s.upper() for s in (args.symbols or settings.symbols)]

    async with AnalysisService.from_settings(settings, engine_config) as service:
        if args.command == "analyze":
            await cmd_analyze(service, symbols, args.output)
        else:
            interval = args.interval if args.interval is not None else settings.monitor_interval_minutes
            await cmd_monitor(service, symbols, interval, args.iterations)


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    run()
