"""Test package for the chat relay.

Unit tests cover isolated logic; integration tests drive the real FastAPI
app over ASGI with a fake upstream provider.

Structure:
    - unit/: Framing, message state, config, relay and client components
    - integration/: Relay endpoint and client session end to end

Leverages pytest with pytest-asyncio and pytest-check for soft assertions.
"""
