"""On-chain state readers."""
