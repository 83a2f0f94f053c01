"""
Transaction assembly and signing coordination.

- models:   Transaction, Message and Authorization types
- builder:  turns message invocations into transactions or batch entries
- batch:    atomic multi-message batches with rollback
- signing:  required keys, key/sign providers, broadcast
- contract: per-contract handles built from ABI metadata
"""
