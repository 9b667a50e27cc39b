"""Sigil - Identity material: credential loading, the wallet, request signing."""
