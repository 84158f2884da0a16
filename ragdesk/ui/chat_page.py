"""NiceGUI chat page over the streaming chat client."""

import logging

from nicegui import ui

from ragdesk.api.client import get_api_client
from ragdesk.chat.answers import is_no_answer_found
from ragdesk.chat.client import StreamingChatClient
from ragdesk.chat.errors import RagDeskError
from ragdesk.chat.store import MessageStore
from ragdesk.models.schemas import ChatMessage, Role, SourceDocument
from ragdesk.ui.theme import CUSTOM_CSS, render_avatar, render_header

logger = logging.getLogger(__name__)


@ui.page("/")
async def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)
    api = get_api_client()
    store = MessageStore()

    messages_container: ui.column
    kb_select: ui.select
    input_field: ui.textarea
    send_btn: ui.button
    stop_btn: ui.button

    async def download_source(doc: SourceDocument) -> None:
        try:
            downloaded = await api.download_document(doc.id, doc.name or None)
        except RagDeskError as e:
            ui.notify(f"Download failed: {e}", type="negative")
            return
        ui.download.content(downloaded.content, downloaded.filename)

    async def download_template() -> None:
        try:
            downloaded = await api.download_template()
        except RagDeskError as e:
            ui.notify(f"Download failed: {e}", type="negative")
            return
        ui.download.content(downloaded.content, downloaded.filename)

    def render_message(msg: ChatMessage, streaming: bool) -> None:
        is_user = msg.role == Role.USER
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"

        with ui.row().classes(f"w-full {align} gap-3 items-end"):
            if not is_user:
                render_avatar(False)
            with ui.column().classes("max-w-[70%] gap-1"):
                with ui.element("div").classes(f"px-4 py-3 {bubble}"):
                    if is_user:
                        ui.label(msg.content).classes("text-sm whitespace-pre-wrap")
                    elif not msg.content and streaming:
                        with ui.row().classes("gap-1 items-center"):
                            for _ in range(3):
                                ui.element("div").classes("typing-dot")
                    else:
                        ui.markdown(msg.content).classes("text-sm leading-relaxed")

                # Only an unambiguous single best match is offered for download
                if not is_user and msg.sources and len(msg.sources) == 1:
                    doc = msg.sources[0]
                    ui.button(
                        doc.name or f"document_{doc.id}",
                        icon="download",
                        on_click=lambda d=doc: download_source(d),
                    ).props("outline dense no-caps size=sm")

                if not is_user and not streaming and is_no_answer_found(msg.content):
                    with ui.row().classes("items-center gap-2"):
                        ui.label("No answer in this knowledge base.").classes(
                            "text-xs text-gray-500"
                        )
                        ui.button(
                            "Add company data", icon="add", on_click=lambda: ui.navigate.to("/intake")
                        ).props("flat dense no-caps size=sm")
                        ui.button(
                            "Template", icon="download", on_click=download_template
                        ).props("flat dense no-caps size=sm")

                meta = msg.created_at
                if msg.thinking_time is not None:
                    meta += f" · {msg.thinking_time:.1f}s"
                ui.label(meta).classes(
                    f"text-[10px] text-gray-400 {'self-end' if is_user else 'self-start'}"
                )
            if is_user:
                render_avatar(True)

    def refresh_messages() -> None:
        messages_container.clear()
        open_message = store.last_assistant() if chat.is_loading else None
        with messages_container:
            if not len(store):
                with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                    ui.icon("forum").classes("text-5xl text-gray-300")
                    ui.label("Start a conversation").classes("text-lg text-gray-400")
            else:
                for msg in store:
                    render_message(msg, streaming=msg is open_message)

    def sync_controls() -> None:
        if chat.is_loading:
            send_btn.disable()
            stop_btn.set_visibility(True)
        else:
            send_btn.enable()
            stop_btn.set_visibility(False)

    def on_change() -> None:
        refresh_messages()
        sync_controls()

    chat = StreamingChatClient(store=store, on_change=on_change)

    async def load_knowledge_bases() -> None:
        try:
            knowledge_bases = await api.list_knowledge_bases()
        except RagDeskError as e:
            logger.error(f"Failed to load knowledge bases: {e}")
            ui.notify("Failed to load knowledge bases", type="negative")
            return
        kb_select.set_options({kb.id: kb.name for kb in knowledge_bases})
        if knowledge_bases and kb_select.value is None:
            kb_select.set_value(knowledge_bases[0].id)

    async def send_message() -> None:
        if chat.is_loading:
            return
        text = input_field.value or ""
        try:
            input_field.value = ""
            await chat.send(text, kb_select.value)
        except RagDeskError as e:
            input_field.value = text
            ui.notify(str(e), type="warning")

    def stop_message() -> None:
        chat.stop()

    def new_chat() -> None:
        chat.reset()

    # === UI Layout ===
    with (
        ui.element("div").classes("w-full min-h-screen p-4 md:p-8"),
        ui.column().classes("w-full max-w-3xl mx-auto app-container").style(
            "height: calc(100vh - 4rem)"
        ),
    ):
        with render_header("RAG Assistant", "smart_toy"):
            kb_select = (
                ui.select({}, label="Knowledge base")
                .props("dense outlined dark options-dense")
                .classes("w-48")
            )
            ui.button(icon="library_books").props("flat round color=white").on(
                "click", lambda: ui.navigate.to("/knowledge")
            )
            ui.button(icon="eco").props("flat round color=white").on(
                "click", lambda: ui.navigate.to("/intake")
            )
            ui.button(icon="add", on_click=new_chat).props("flat round color=white")

        with (
            ui.scroll_area().classes("flex-grow w-full bg-gray-50"),
            ui.column().classes("w-full p-5"),
        ):
            messages_container = ui.column().classes("w-full gap-4")

        with ui.row().classes("w-full p-4 gap-3 items-end bg-white border-t"):
            with ui.element("div").classes("flex-grow input-box px-3 py-2"):
                input_field = (
                    ui.textarea(placeholder="Ask about your documents...")
                    .props("autogrow borderless dense rows=1")
                    .classes("w-full")
                    .on("keydown.enter.prevent", send_message)
                )
            stop_btn = ui.button(icon="stop", on_click=stop_message).props("round unelevated color=negative")
            send_btn = (
                ui.button(icon="send", on_click=send_message)
                .props("round unelevated")
                .classes("send-btn")
            )

    refresh_messages()
    sync_controls()
    await load_knowledge_bases()
