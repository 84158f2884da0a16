"""NiceGUI knowledge base management page.

Lists knowledge bases and their documents, and drives upload, parse,
reparse and deletion through the REST client.
"""

import logging
import math

from nicegui import events, ui

from ragdesk.api.client import get_api_client
from ragdesk.chat.errors import RagDeskError
from ragdesk.models.schemas import Document, KnowledgeBase
from ragdesk.ui.theme import CUSTOM_CSS, render_header, render_status_badge

logger = logging.getLogger(__name__)

PAGE_SIZE = 10


def paginate(documents: list[Document], page: int, page_size: int = PAGE_SIZE) -> list[Document]:
    """Return the documents shown on a 1-based page."""
    start = (page - 1) * page_size
    return documents[start:start + page_size]


def page_count(total: int, page_size: int = PAGE_SIZE) -> int:
    return max(1, math.ceil(total / page_size))


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


@ui.page("/knowledge")
async def knowledge_page() -> None:
    """Knowledge base management page."""
    ui.add_head_html(CUSTOM_CSS)
    api = get_api_client()

    state: dict = {
        "knowledge_bases": [],
        "selected": None,
        "documents": [],
        "page": 1,
        "parsing": set(),
    }

    kb_container: ui.column
    doc_container: ui.column

    def selected_kb() -> KnowledgeBase | None:
        return next((kb for kb in state["knowledge_bases"] if kb.id == state["selected"]), None)

    async def run(action, failure: str) -> bool:
        try:
            await action
        except RagDeskError as e:
            logger.warning(f"{failure}: {e}")
            ui.notify(f"{failure}: {e}", type="negative")
            return False
        return True

    async def load_knowledge_bases() -> None:
        try:
            state["knowledge_bases"] = await api.list_knowledge_bases()
        except RagDeskError as e:
            logger.error(f"Failed to load knowledge bases: {e}")
            ui.notify("Failed to load knowledge bases", type="negative")
            return
        ids = {kb.id for kb in state["knowledge_bases"]}
        if state["selected"] not in ids:
            state["selected"] = state["knowledge_bases"][0].id if ids else None
        render_knowledge_bases()
        await load_documents()

    async def load_documents() -> None:
        if state["selected"] is None:
            state["documents"] = []
        else:
            try:
                state["documents"] = await api.list_documents(state["selected"])
            except RagDeskError as e:
                logger.error(f"Failed to load documents: {e}")
                ui.notify("Failed to load documents", type="negative")
                return
        state["page"] = min(state["page"], page_count(len(state["documents"])))
        render_documents()

    async def select(kb_id: int) -> None:
        state["selected"] = kb_id
        state["page"] = 1
        render_knowledge_bases()
        await load_documents()

    async def create_knowledge_base(name: str, description: str, dialog: ui.dialog) -> None:
        if await run(api.create_knowledge_base(name, description), "Create failed"):
            dialog.close()
            await load_knowledge_bases()

    async def delete_knowledge_base(kb: KnowledgeBase) -> None:
        if not await confirm(f"Delete knowledge base '{kb.name}' and all of its documents?"):
            return
        if await run(api.delete_knowledge_base(kb.id), "Delete failed"):
            await load_knowledge_bases()

    async def handle_upload(e: events.UploadEventArguments) -> None:
        kb_id = state["selected"]
        if kb_id is None:
            ui.notify("Select a knowledge base first", type="warning")
            return
        content = await e.file.read()
        if await run(
            api.upload_document(kb_id, e.file.name, content, e.file.content_type),
            "Upload failed",
        ):
            await load_documents()

    async def parse(doc: Document, again: bool = False) -> None:
        if again and not await confirm(
            f"Reparse '{doc.name}'? Its existing parsed data will be deleted."
        ):
            return
        kb_id = state["selected"]
        action = api.reparse(doc.id) if again else api.start_parse(doc.id)
        if not await run(action, "Parse failed"):
            return
        state["parsing"].add(doc.id)
        await load_documents()
        try:
            await api.wait_for_parse(kb_id, doc.id)
        except RagDeskError as e:
            logger.warning(f"Stopped waiting for document {doc.id}: {e}")
        finally:
            state["parsing"].discard(doc.id)
        if state["selected"] == kb_id:
            await load_documents()

    async def delete_document(doc: Document) -> None:
        if not await confirm(f"Delete document '{doc.name}'?"):
            return
        if await run(api.delete_document(doc.id), "Delete failed"):
            await load_documents()

    async def confirm(question: str) -> bool:
        with ui.dialog() as dialog, ui.card():
            ui.label(question)
            with ui.row().classes("w-full justify-end"):
                ui.button("Cancel", on_click=lambda: dialog.submit(False)).props("flat")
                ui.button("Confirm", on_click=lambda: dialog.submit(True)).props("color=negative")
        return bool(await dialog)

    def open_create_dialog() -> None:
        with ui.dialog() as dialog, ui.card().classes("w-96"):
            ui.label("New knowledge base").classes("text-lg font-semibold")
            name = ui.input("Name").classes("w-full")
            description = ui.textarea("Description").classes("w-full")
            with ui.row().classes("w-full justify-end"):
                ui.button("Cancel", on_click=dialog.close).props("flat")
                ui.button(
                    "Create",
                    on_click=lambda: create_knowledge_base(name.value, description.value, dialog),
                )
        dialog.open()

    def render_knowledge_bases() -> None:
        kb_container.clear()
        with kb_container:
            if not state["knowledge_bases"]:
                ui.label("No knowledge bases yet").classes("text-sm text-gray-400")
            for kb in state["knowledge_bases"]:
                active = "bg-blue-50 border-blue-300" if kb.id == state["selected"] else "border-gray-200"
                with ui.row().classes(
                    f"w-full items-center justify-between border rounded-lg px-3 py-2 cursor-pointer {active}"
                ).on("click", lambda kb_id=kb.id: select(kb_id)):
                    with ui.column().classes("gap-0"):
                        ui.label(kb.name).classes("text-sm font-medium")
                        ui.label(f"{kb.doc_count} documents").classes("text-xs text-gray-500")
                    ui.button(icon="delete").props("flat round dense color=negative").on(
                        "click.stop", lambda kb=kb: delete_knowledge_base(kb)
                    )

    def render_documents() -> None:
        doc_container.clear()
        kb = selected_kb()
        with doc_container:
            if kb is None:
                ui.label("Select or create a knowledge base").classes("text-gray-400")
                return

            with ui.row().classes("w-full items-center justify-between"):
                with ui.column().classes("gap-0"):
                    ui.label(kb.name).classes("text-lg font-semibold")
                    if kb.description:
                        ui.label(kb.description).classes("text-sm text-gray-500")
                ui.upload(label="Upload document", auto_upload=True, on_upload=handle_upload).props(
                    "flat bordered"
                ).classes("w-64")

            documents = state["documents"]
            if not documents:
                ui.label("No documents in this knowledge base").classes("text-sm text-gray-400")
                return

            for doc in paginate(documents, state["page"]):
                busy = doc.id in state["parsing"] or doc.status == "processing"
                with ui.row().classes("w-full items-center justify-between border-b py-2"):
                    with ui.row().classes("items-center gap-3"):
                        ui.icon("description").classes("text-gray-400")
                        with ui.column().classes("gap-0"):
                            ui.label(doc.name).classes("text-sm font-medium")
                            ui.label(
                                f"{format_size(doc.file_size)} · {doc.chunk_count} chunks"
                            ).classes("text-xs text-gray-500")
                    with ui.row().classes("items-center gap-2"):
                        render_status_badge(doc.status)
                        if busy:
                            ui.spinner(size="sm")
                        elif doc.status == "pending":
                            ui.button("Parse", on_click=lambda d=doc: parse(d)).props("dense flat no-caps")
                        else:
                            ui.button(
                                "Reparse", on_click=lambda d=doc: parse(d, again=True)
                            ).props("dense flat no-caps")
                        ui.button(
                            icon="delete", on_click=lambda d=doc: delete_document(d)
                        ).props("flat round dense color=negative")

            pages = page_count(len(documents))
            if pages > 1:
                ui.pagination(
                    1,
                    pages,
                    direction_links=True,
                    value=state["page"],
                    on_change=lambda e: change_page(e.value),
                )

    def change_page(page: int) -> None:
        state["page"] = page
        render_documents()

    with (
        ui.element("div").classes("w-full min-h-screen p-4 md:p-8"),
        ui.column().classes("w-full max-w-6xl mx-auto app-container"),
    ):
        with render_header("Knowledge Bases", "library_books"):
            ui.button(icon="chat").props("flat round color=white").on(
                "click", lambda: ui.navigate.to("/")
            )
            ui.button(icon="eco").props("flat round color=white").on(
                "click", lambda: ui.navigate.to("/intake")
            )

        with ui.row().classes("w-full p-5 gap-6 no-wrap items-start"):
            with ui.column().classes("w-72 gap-3"):
                ui.button("New knowledge base", icon="add", on_click=open_create_dialog).classes(
                    "w-full"
                )
                kb_container = ui.column().classes("w-full gap-2")
            doc_container = ui.column().classes("flex-grow gap-2")

    await load_knowledge_bases()

