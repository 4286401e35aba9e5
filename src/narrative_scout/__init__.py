"""Crypto ecosystem narrative detection from on-chain, GitHub and market signals."""
