"""
Pneuma - Ledger interaction layer for assetgate.

Connection profiles, the signed gateway wire helper, sessions
(gateway → network → contract), the submit/evaluate executor, and the
container probe used for failure diagnostics.

Uses httpx for every remote call.
"""
