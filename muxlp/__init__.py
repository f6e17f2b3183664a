"""muxlp package: aggregate MUX pool state across chains and price the MUXLP share."""
__all__ = [
    "config",
    "ledger",
    "valuation",
    "prices",
    "aggregator",
]
