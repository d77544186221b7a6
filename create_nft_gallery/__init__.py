"""Scaffold NFT gallery web projects for Arweave Name System domains."""

__version__ = "1.0.0"
