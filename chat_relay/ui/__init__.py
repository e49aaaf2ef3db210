"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Chat message display with streaming support
    - Input, send and stop controls gated by the pending flag
    - New-conversation reset

Contains no streaming logic. Delegates everything to ChatSession.
"""
