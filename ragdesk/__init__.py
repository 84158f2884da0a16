"""ragdesk - browser front-end for a retrieval-augmented-generation chat service.

Combines NiceGUI for the interface, HTTPX for talking to the remote RAG API,
FastAPI as the host application, and Pydantic for data validation.

Components:
    - chat: Streaming chat client (SSE decoding, token pacing, cancellation)
    - api: REST client for knowledge bases, documents and reports
    - intake: Client-side validation of carbon emissions intake data
    - ui: Web pages for chatting and knowledge base management
    - models: Message, event and API schemas
"""

__version__ = "0.1.0"
