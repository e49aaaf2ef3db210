"""Integration tests for components working together as a system.

Coverage:
    - POST /chat with real HTTP requests over ASGITransport
    - Error responses before streaming and error frames after it
    - ChatSession driving the relay end to end

The upstream provider is simulated with httpx.MockTransport, so these
tests run without API keys or network access.
"""
