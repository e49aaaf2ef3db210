"""Chat Relay - streaming conversational web client.

Combines FastAPI for the server-side relay, httpx for streaming HTTP on
both legs, NiceGUI for the chat window, and Pydantic for data validation.

Components:
    - api: HTTP endpoint streaming server-sent events
    - relay: Upstream provider client and stream forwarder
    - streaming: Event-stream framing shared by relay and client
    - chat: Client-side message state and reply reassembly
    - ui: Web interface for chat interactions
    - models: Request/response schemas
"""

__version__ = "0.1.0"
