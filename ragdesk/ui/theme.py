"""Shared styling and layout pieces of the NiceGUI pages."""

from collections.abc import Iterator
from contextlib import contextmanager

from nicegui import ui

CUSTOM_CSS = """
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600&display=swap"
      rel="stylesheet">
<style>
    * { font-family: 'Inter', sans-serif; }

    body { background: #f8fafc; min-height: 100vh; }

    .app-container {
        background: white;
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(15, 23, 42, 0.08);
        overflow: hidden;
    }

    .header { background: linear-gradient(135deg, #1d4ed8 0%, #2563eb 100%); }

    .message-user {
        background: #2563eb;
        color: white;
        border-radius: 18px 18px 4px 18px;
    }

    .message-assistant {
        background: #f1f5f9;
        color: #0f172a;
        border-radius: 18px 18px 18px 4px;
    }

    .avatar-user { background: #2563eb; }
    .avatar-assistant { background: #64748b; }

    .typing-dot {
        width: 8px; height: 8px;
        background: #2563eb;
        border-radius: 50%;
        animation: bounce 1.4s infinite ease-in-out;
    }
    .typing-dot:nth-child(2) { animation-delay: 0.2s; }
    .typing-dot:nth-child(3) { animation-delay: 0.4s; }

    @keyframes bounce {
        0%, 60%, 100% { transform: translateY(0); }
        30% { transform: translateY(-6px); }
    }

    .input-box {
        background: #f8fafc;
        border: 1px solid #e2e8f0;
        border-radius: 12px;
    }
    .input-box:focus-within { border-color: #2563eb; }

    .send-btn { background: #2563eb !important; }

    .message-assistant pre { margin: 0.5rem 0; }
    .message-assistant code { font-family: 'Menlo', 'Monaco', monospace; }
</style>
"""

# Display label and Tailwind classes per document status
STATUS_BADGES: dict[str, tuple[str, str]] = {
    "completed": ("Completed", "bg-green-100 text-green-700"),
    "processing": ("Processing", "bg-blue-100 text-blue-700"),
    "failed": ("Failed", "bg-red-100 text-red-700"),
    "pending": ("Pending", "bg-gray-100 text-gray-700"),
}


def render_avatar(is_user: bool) -> None:
    css = "avatar-user" if is_user else "avatar-assistant"
    icon = "person" if is_user else "smart_toy"
    with ui.element("div").classes(f"w-9 h-9 rounded-full flex items-center justify-center {css}"):
        ui.icon(icon).classes("text-white text-lg")


def render_status_badge(status: str) -> None:
    label, classes = STATUS_BADGES.get(status, (status, "bg-gray-100 text-gray-700"))
    ui.label(label).classes(f"text-xs px-2 py-0.5 rounded-full {classes}")


@contextmanager
def render_header(title: str, icon: str) -> Iterator[ui.row]:
    """Page header; the body of the ``with`` block fills its right side."""
    with ui.row().classes("w-full header px-5 py-4 items-center justify-between"):
        with ui.row().classes("items-center gap-3"):
            ui.icon(icon).classes("text-white text-3xl")
            ui.label(title).classes("text-lg font-semibold text-white")
        with ui.row().classes("items-center gap-3") as controls:
            yield controls
