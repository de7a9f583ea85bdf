"""
Adapter layer for the Articles API.

Builds the clients for external services (the S3-compatible object store).
"""
