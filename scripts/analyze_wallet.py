"""Analyze a wallet from the command line and print its risk report.

Usage:
    python scripts/analyze_wallet.py 0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045
    python scripts/analyze_wallet.py 0xd8dA...6045 56 --json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config.settings import settings  # noqa: E402
from src.models.risk import RiskReport  # noqa: E402
from src.parsers.analyzer import WalletAnalyzer  # noqa: E402
from src.parsers.chains import DEFAULT_CHAIN_ID, SUPPORTED_CHAIN_IDS  # noqa: E402
from src.parsers.dexscreener.client import DexScreenerClient  # noqa: E402
from src.parsers.etherscan.client import EtherscanClient  # noqa: E402
from src.parsers.exceptions import AnalyzerError  # noqa: E402
from src.utils.logger import setup_logger  # noqa: E402

LEVEL_BADGES = {"LOW": "✅", "MEDIUM": "⚠️", "HIGH": "❗", "CRITICAL": "🚨"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Crypto portfolio risk analyzer")
    parser.add_argument("wallet", help="Wallet address (0x + 40 hex chars)")
    parser.add_argument(
        "chain_id",
        nargs="?",
        type=int,
        default=DEFAULT_CHAIN_ID,
        help=f"Chain id, one of {', '.join(str(c) for c in SUPPORTED_CHAIN_IDS)} (default: 1)",
    )
    parser.add_argument("--json", action="store_true", help="Print the raw JSON report only")
    return parser


def print_report(report: RiskReport) -> None:
    level = report.risk_level.value
    print(f"\n{'─' * 60}")
    print(f"📊 RISK REPORT — {report.chain_name}")
    print(f"{'─' * 60}")
    print(f"{LEVEL_BADGES.get(level, '')} {level} ({report.overall_risk_score}/100)")
    print(
        f"Tokens: {report.total_tokens_found} | "
        f"Est. portfolio: ${report.estimated_portfolio_usd:,.2f}"
    )

    for risk in report.token_risks:
        print(
            f"\n  {risk.symbol:<10} score={risk.risk_score:>3} "
            f"share={risk.portfolio_percentage:5.1f}% liq=${risk.liquidity_usd:,.0f}"
        )
        for flag in risk.flags:
            print(f"    {flag}")

    active = [name for name, on in report.flags.to_dict().items() if on]
    print(f"\nPortfolio flags: {', '.join(active) if active else 'none'}")
    print(f"\n{report.summary}")
    if report.recommendations:
        print("\nRecommendations:")
        for rec in report.recommendations:
            print(f"  • {rec}")


async def main() -> int:
    args = build_parser().parse_args()
    setup_logger(level="WARNING" if args.json else settings.log_level, log_file=False)

    etherscan = EtherscanClient(
        settings.etherscan_api_key,
        max_rps=settings.etherscan_max_rps,
        max_tokens=settings.max_tokens_per_wallet,
        max_concurrent=settings.max_concurrent_lookups,
    )
    dexscreener = DexScreenerClient(max_rps=settings.dexscreener_max_rps)
    analyzer = WalletAnalyzer(
        etherscan, dexscreener, max_concurrent=settings.max_concurrent_lookups
    )

    try:
        report = await analyzer.analyze_wallet(args.wallet, args.chain_id)
    except AnalyzerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: analysis failed: {e}", file=sys.stderr)
        return 1
    finally:
        await etherscan.close()
        await dexscreener.close()

    if args.json:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_report(report)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
