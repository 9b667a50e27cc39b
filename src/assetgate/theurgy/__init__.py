"""
Theurgy - Command implementations for assetgate.

Each module corresponds to a top-level CLI command:
- enroll:   Provision the wallet identity from an MSP directory
- wallet:   Inspect the wallet
- run:      Run the full asset transfer workflow
- call:     Submit or evaluate a single transaction
- probe:    Inspect backing service containers
"""
