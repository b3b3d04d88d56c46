"""
KV-Store: In-Memory Key-Value Store over HTTP

A small key-value service built on asyncio and FastAPI. Every request
is counted, a background worker logs the store status periodically, and
the process drains in-flight requests before exiting on SIGINT/SIGTERM.
"""

__version__ = "1.0.0"
