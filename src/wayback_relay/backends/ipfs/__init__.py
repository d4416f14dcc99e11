"""IPFS backend package."""
