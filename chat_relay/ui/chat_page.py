"""NiceGUI chat interface rendering streamed replies as they arrive."""

import asyncio
import os

from nicegui import ui

from chat_relay.chat.client import RelayClient
from chat_relay.chat.messages import Message
from chat_relay.chat.session import ChatSession
from chat_relay.models.schemas import Role

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")

THINKING_TEXT = "🤖 Thinking…"

CUSTOM_CSS = """
<style>
    body { background: #f5f5f5; min-height: 100vh; }

    .app-container {
        background: white;
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
        overflow: hidden;
    }

    .header { background: #624B78; }

    .message-user {
        background: #ede4f5;
        color: #1f2937;
        border-radius: 18px 18px 4px 18px;
    }

    .message-assistant {
        background: #f3f4f6;
        color: #1f2937;
        border-radius: 18px 18px 18px 4px;
    }

    .message-error {
        background: #fef2f2;
        color: #991b1b;
        border: 1px solid #fecaca;
        border-radius: 18px 18px 18px 4px;
    }
</style>
"""


def _bubble_class(msg: Message) -> str:
    if msg.is_error:
        return "message-error"
    return "message-user" if msg.role is Role.USER else "message-assistant"


@ui.page("/")
def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)

    messages_container: ui.column
    scroll_area: ui.scroll_area
    input_field: ui.textarea
    send_btn: ui.button
    stop_btn: ui.button
    open_view: dict[str, ui.markdown] = {}
    reply_task: asyncio.Task | None = None

    def render_message(msg: Message) -> None:
        is_user = msg.role is Role.USER
        align = "justify-end" if is_user else "justify-start"

        with ui.row().classes(f"w-full {align}"):
            with ui.element("div").classes(f"max-w-[70%] px-4 py-3 {_bubble_class(msg)}"):
                if is_user:
                    ui.label(msg.content).classes("text-sm whitespace-pre-wrap")
                elif msg.is_open:
                    view = ui.markdown(msg.content or THINKING_TEXT).classes("text-sm")
                    open_view[msg.id] = view
                else:
                    ui.markdown(msg.content).classes("text-sm")

    def refresh_messages() -> None:
        open_view.clear()
        messages_container.clear()
        with messages_container:
            if not len(session.messages):
                with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                    ui.icon("forum").classes("text-5xl text-gray-300")
                    ui.label("Start a conversation").classes("text-lg text-gray-400")
            else:
                for msg in session.messages:
                    render_message(msg)

    def on_change() -> None:
        open_msg = session.messages.open_message
        if open_msg is not None and open_msg.id in open_view:
            # Only the streaming reply changed
            open_view[open_msg.id].set_content(open_msg.content or THINKING_TEXT)
        else:
            refresh_messages()
        send_btn.set_enabled(not session.pending)
        stop_btn.set_visibility(session.pending)
        scroll_area.scroll_to(percent=1.0)

    session = ChatSession(RelayClient(API_BASE_URL), on_change=on_change)

    def send_message() -> None:
        nonlocal reply_task
        text = input_field.value or ""
        if not session.accepts(text):
            return
        input_field.value = ""
        reply_task = asyncio.create_task(session.submit(text))

    def stop_reply() -> None:
        if reply_task is not None and not reply_task.done():
            reply_task.cancel()

    def new_chat() -> None:
        if not session.reset():
            ui.notify("Wait for the current reply to finish", type="warning")

    # === UI Layout ===
    with (
        ui.element("div").classes("w-full min-h-screen p-4 md:p-8"),
        ui.column().classes("w-full max-w-2xl mx-auto app-container").style(
            "height: calc(100vh - 4rem)"
        ),
    ):
        # Header
        with ui.row().classes("w-full header px-5 py-4 items-center justify-between"):
            with ui.row().classes("items-center gap-3"):
                ui.icon("chat").classes("text-white text-3xl")
                ui.label("Chat").classes("text-lg font-semibold text-white")
            ui.button(icon="add", on_click=new_chat).props("flat round color=white")

        # Messages
        with ui.scroll_area().classes("flex-grow w-full bg-gray-50") as scroll_area:
            messages_container = ui.column().classes("w-full gap-4 p-5")

        # Input
        with ui.row().classes("w-full p-4 gap-3 items-end bg-white border-t"):
            input_field = (
                ui.textarea(placeholder="Type a message…")
                .props("autogrow outlined dense rows=1 aria-label='Chat input'")
                .classes("flex-grow")
                .on("keydown.enter.prevent", send_message)
            )
            stop_btn = ui.button(icon="stop", on_click=stop_reply).props("round flat")
            stop_btn.set_visibility(False)
            send_btn = ui.button(icon="send", on_click=send_message).props(
                "round unelevated color=purple"
            )

    refresh_messages()


def main() -> None:
    ui.run(title="Chat", port=8080, reload=False)


if __name__ == "__main__":
    main()
