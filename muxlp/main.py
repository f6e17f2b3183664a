import argparse
import sys
from decimal import Decimal

from .aggregator import run
from .config import get_price_api
from .errors import LiquidityError
from .ledger import DECIMAL_CONTEXT
from .prices import fetch_asset_prices, load_price_file

# The price line is rounded for display only; the summary CSV keeps every digit
PRICE_DISPLAY_QUANTUM = Decimal("1e-18")

READER_HELP = """\
chains.yaml ships no MUX Reader addresses. Before reading mainnet, set
reader: '0x...' for every chain you run (quoted), or export
MUXLP_READER_<CHAIN> (e.g. MUXLP_READER_ARBITRUM). Without one the run
stops with "No Reader address for <chain>".
"""


def build_parser():
    p = argparse.ArgumentParser(
        description="Compute MUXLP AUM, circulating supply and price across chains",
        epilog=READER_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("--chains", help="Comma-separated chain names (default: all enabled chains in chains.yaml)")
    p.add_argument("--prices-file", help="YAML/JSON file of symbol -> price, instead of the MUX price API")
    p.add_argument("--price-api", help="Override the liquidity-asset price API URL")
    p.add_argument("--workers", type=int, default=1, help="Parallel chain reads (default 1 = sequential)")
    p.add_argument("--out-root", default="data/out", help="Root directory for output CSVs")
    p.add_argument("--no-write", action="store_true", help="Do not write CSV files; just print")
    p.add_argument("--breakdown", action="store_true", help="Print each symbol's contribution to AUM")
    return p


def main(argv=None):
    args = build_parser().parse_args(argv)
    chains = [c for c in args.chains.split(",") if c.strip()] if args.chains else None

    try:
        # you can replace the API prices with your own oracle via --prices-file
        if args.prices_file:
            prices = load_price_file(args.prices_file)
        else:
            api = get_price_api()
            prices = fetch_asset_prices(
                args.price_api or api["url"],
                timeout=float(api["timeout_sec"]),
                max_tries=int(api["max_tries"]),
            )

        summary = run(
            prices,
            chains=chains,
            workers=args.workers,
            out_root=args.out_root,
            no_write=args.no_write,
        )
    except (LiquidityError, ValueError) as e:
        print(f"❌ {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    if args.breakdown:
        for row in summary.assets:
            print(f"   - {row.symbol}: lpBalance={row.lp_balance:f} price={row.price:f} "
                  f"longUpnl={row.long_upnl:f} shortUpnl={row.short_upnl:f} → {row.contribution:f}")

    print(f"AUM: {summary.aum:f}")
    print(f"muxlpTotalSupply: {summary.circulating_supply:f}")
    price = summary.price_per_share.quantize(PRICE_DISPLAY_QUANTUM, context=DECIMAL_CONTEXT)
    print(f"MUXLP Price: {price:f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
