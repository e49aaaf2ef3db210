"""Unit tests for individual components in isolation.

Ensures fast execution with minimal dependencies.

Coverage:
    - streaming/: Event-stream decoding and encoding
    - chat/: Message lifecycle, relay client and session logic
    - relay/: Configuration, upstream client and forwarder

Uses httpx.MockTransport in place of real HTTP services. Leverages
pytest-check for multiple assertions per test.
"""
