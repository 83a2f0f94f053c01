"""
RPC - Node access for eostx.

Provides the async JSON-RPC chain client, its pluggable transport, and
ABI management for contracts.

Uses httpx for HTTP; the transport can be swapped for tests.
"""
