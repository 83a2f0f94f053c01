"""
Commands - CLI command implementations.

- transfer: Send (or just sign) a transfer from the local wallet
- push:     Sign and push a transaction assembled in a JSON file
"""
