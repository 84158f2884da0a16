"""Pydantic models for chat state, stream events and API payloads.

Provides type safety and validation at the boundary with the remote backend.

Models:
    - ChatMessage: Individual message in the conversation
    - ChatRequest: Body of the streaming chat request
    - StreamEvent: Discriminated union of SSE frame payloads
    - ApiEnvelope: ``{code, msg, data}`` wrapper of REST responses
    - KnowledgeBase / Document: Knowledge base management records
    - DataImportPayload: Carbon emissions intake submission
"""

from ragdesk.models.intake import (
    CompanyInfo,
    CompletenessCheck,
    DailyData,
    DataImportPayload,
    EmissionTotals,
    SatelliteData,
    Scope2Data,
    Scope3Data,
    Scope3Dimension,
    Scope3Variable,
    ValidationResult,
)
from ragdesk.models.schemas import (
    ApiEnvelope,
    ChatMessage,
    ChatRequest,
    Document,
    DocumentStatus,
    DoneEvent,
    DownloadedFile,
    ErrorEvent,
    KnowledgeBase,
    Role,
    SearchCompleteEvent,
    SourceDocument,
    SourcesEvent,
    StreamEvent,
    StreamEventType,
    TokenEvent,
)

__all__ = [
    "ApiEnvelope",
    "ChatMessage",
    "ChatRequest",
    "CompanyInfo",
    "CompletenessCheck",
    "DailyData",
    "DataImportPayload",
    "Document",
    "DocumentStatus",
    "DoneEvent",
    "DownloadedFile",
    "EmissionTotals",
    "ErrorEvent",
    "KnowledgeBase",
    "Role",
    "SatelliteData",
    "Scope2Data",
    "Scope3Data",
    "Scope3Dimension",
    "Scope3Variable",
    "SearchCompleteEvent",
    "SourceDocument",
    "SourcesEvent",
    "StreamEvent",
    "StreamEventType",
    "TokenEvent",
    "ValidationResult",
]
