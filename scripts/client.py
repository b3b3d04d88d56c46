#!/usr/bin/env python3
"""
Interactive Test Client for KV-Store

A simple command-line client for manually testing the KV-Store server.

Usage:
    python scripts/client.py                  # Connect to localhost:8080
    python scripts/client.py --host 1.2.3.4   # Connect to specific host
    python scripts/client.py --port 9090      # Connect to specific port

Commands:
    set <key>=<value> [...]   - POST /data with one or more pairs
    get                       - GET /data
    delete <key>              - DELETE /data/<key>
    stats                     - GET /stats
    raw <body>                - POST /data with an arbitrary body
    help                      - Show this help
    exit                      - Exit client
"""

import argparse
import json
import sys

import httpx

# Enable command history with arrow keys (works on Unix systems)
try:
    import readline
except ImportError:
    pass  # readline not available on Windows by default


class KVStoreClient:
    """Small synchronous HTTP client for KV-Store."""

    def __init__(self, host: str, port: int, timeout: float = 5.0):
        self.base_url = f"http://{host}:{port}"
        self._http = httpx.Client(base_url=self.base_url, timeout=timeout)

    def close(self):
        self._http.close()

    def set(self, pairs: dict) -> httpx.Response:
        return self._http.post("/data", json=pairs)

    def post_raw(self, body: str) -> httpx.Response:
        return self._http.post("/data", content=body.encode("utf-8"),
                               headers={"Content-Type": "application/json"})

    def get_all(self) -> httpx.Response:
        return self._http.get("/data")

    def delete(self, key: str) -> httpx.Response:
        return self._http.delete(f"/data/{key}")

    def stats(self) -> httpx.Response:
        return self._http.get("/stats")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def format_response(response: httpx.Response) -> str:
    """Render a response as '<status> <body>'."""
    if not response.content:
        return str(response.status_code)
    try:
        body = json.dumps(response.json(), indent=2, sort_keys=True)
    except ValueError:
        body = response.text
    return f"{response.status_code} {body}"


def parse_pairs(args: list) -> dict:
    """Turn ['a=1', 'b=2'] into {'a': '1', 'b': '2'}."""
    pairs = {}
    for item in args:
        key, sep, value = item.partition("=")
        if not sep:
            raise ValueError(f"expected key=value, got {item!r}")
        pairs[key] = value
    return pairs


def print_help():
    """Print help message."""
    print("""
KV-Store Commands:
------------------
  set <key>=<value> [...]   Store one or more pairs (POST /data)
  get                       Show every stored pair (GET /data)
  delete <key>              Delete a key (DELETE /data/<key>)
  stats                     Show request count and store size (GET /stats)
  raw <body>                POST an arbitrary body to /data

Client Commands:
----------------
  help                      Show this help message
  exit                      Exit the client

Examples:
---------
  set name=Alice            Store "Alice" under "name"
  set a=1 b=2               Store two pairs in one request
  delete name               Delete "name"
  raw {not json             Expect 400
""")


def execute(client: KVStoreClient, line: str) -> str:
    """Run one command line against the server and return the output."""
    command, _, rest = line.partition(" ")
    command = command.lower()

    if command == "set":
        return format_response(client.set(parse_pairs(rest.split())))
    if command == "get":
        return format_response(client.get_all())
    if command == "delete":
        if not rest.strip():
            return "usage: delete <key>"
        return format_response(client.delete(rest.strip()))
    if command == "stats":
        return format_response(client.stats())
    if command == "raw":
        return format_response(client.post_raw(rest))
    return f"unknown command: {command} (type 'help')"


def main():
    parser = argparse.ArgumentParser(
        description="Interactive test client for KV-Store"
    )
    parser.add_argument("--host", type=str, default="localhost",
                        help="Server host (default: localhost)")
    parser.add_argument("--port", type=int, default=8080,
                        help="Server port (default: 8080)")
    parser.add_argument("--timeout", type=float, default=5.0,
                        help="Request timeout in seconds (default: 5.0)")
    args = parser.parse_args()

    print("KV-Store Client")
    print("===============")

    with KVStoreClient(args.host, args.port, args.timeout) as client:
        try:
            client.stats()
        except httpx.HTTPError as e:
            print(f"Cannot reach {client.base_url}: {e}")
            print(f"  Try: python -m kvstore.server --port {args.port}")
            sys.exit(1)

        print(f"Connected to {client.base_url}. Type 'help' for commands.\n")

        try:
            while True:
                try:
                    line = input(">>> ").strip()
                except EOFError:
                    print("\nGoodbye!")
                    break

                if not line:
                    continue
                if line.lower() == "help":
                    print_help()
                    continue
                if line.lower() in ("exit", "quit"):
                    print("Goodbye!")
                    break

                try:
                    print(execute(client, line))
                except ValueError as e:
                    print(f"ERROR: {e}")
                except httpx.HTTPError as e:
                    print(f"ERROR: {e}")

        except KeyboardInterrupt:
            print("\n\nInterrupted. Goodbye!")


if __name__ == "__main__":
    main()
