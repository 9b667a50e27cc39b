"""JSON schemas for the documents assetgate reads from disk and the wire."""
