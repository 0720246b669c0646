"""Integration tests for the pulsewatch client.

These tests run the real SQLite store and HTTP client, with the server
replaced by an httpx.MockTransport handler.

Test modules:
- test_local_store.py: SQLite key-value store
- test_client_api.py: client-upgrade and session endpoints
- test_upgrade_flow.py: detection, upgrade and clean-up end to end
"""
