"""REST client for the RAG, report and carbon data backends.

Every JSON endpoint answers with a ``{code, msg, data}`` envelope where
``code == 200`` means success. Binary endpoints return raw bytes and a
Content-Disposition filename.
"""

import asyncio
import logging
import time
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from ragdesk.api.downloads import to_downloaded_file
from ragdesk.chat.errors import ApiError, PreconditionError, TransportError
from ragdesk.config import ClientConfig, get_client_config
from ragdesk.models.intake import DataImportPayload
from ragdesk.models.schemas import (
    ApiEnvelope,
    Document,
    DownloadedFile,
    KnowledgeBase,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_USER_ID = 1


class RagApiClient:
    """Async client for the knowledge base, document and report endpoints.

    Can be used as an async context manager, which closes the underlying
    HTTP client on exit when the client owns it.

    Args:
        config: Client configuration. Loads from environment if not provided.
        http_client: Optional AsyncClient with ``base_url`` set. One is
            created (and owned) otherwise.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or get_client_config()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self._config.api_base_url,
            timeout=self._config.request_timeout,
        )

    async def __aenter__(self) -> "RagApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # -- transport --------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise TransportError(f"Connection failed: {e}") from e

        if not response.is_success:
            logger.error(f"{method} {path} returned HTTP {response.status_code}")
            raise TransportError(
                f"Request failed: {response.status_code} {response.reason_phrase}"
            )
        return response

    async def _call(
        self,
        path: str,
        data_type: type[T] | Any = Any,
        *,
        method: str = "POST",
        **kwargs: Any,
    ) -> T:
        """Send a request and unwrap its envelope.

        Raises:
            TransportError: Network failure, non-2xx status or a body that is
                not a valid envelope.
            ApiError: The envelope reports a failure code.
        """
        response = await self._request(method, path, **kwargs)
        try:
            envelope = ApiEnvelope[data_type].model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise TransportError(f"Invalid response from {path}: {e}") from e

        if not envelope.ok:
            logger.warning(f"{path} returned code {envelope.code}: {envelope.msg}")
            raise ApiError(envelope.code, envelope.msg)
        return envelope.data

    async def _download(self, path: str, default_name: str, **kwargs: Any) -> DownloadedFile:
        response = await self._request(kwargs.pop("method", "POST"), path, **kwargs)
        downloaded = to_downloaded_file(response, default_name)
        logger.info(f"Downloaded {downloaded.filename} ({downloaded.size} bytes)")
        return downloaded

    # -- knowledge bases --------------------------------------------------

    async def list_knowledge_bases(self) -> list[KnowledgeBase]:
        return await self._call("/dataset/read", list[KnowledgeBase], json={}) or []

    async def create_knowledge_base(
        self,
        name: str,
        description: str = "",
        user_id: int = DEFAULT_USER_ID,
    ) -> None:
        """Create a knowledge base.

        Raises:
            PreconditionError: If the name is blank.
        """
        if not name or not name.strip():
            raise PreconditionError("Please enter a knowledge base name")
        await self._call(
            "/dataset/create",
            json={"name": name.strip(), "description": description, "user_id": user_id},
        )
        logger.info(f"Created knowledge base: {name.strip()}")

    async def delete_knowledge_base(self, knowledge_base_id: int) -> None:
        await self._call("/dataset/delete", json={"id": knowledge_base_id})
        logger.info(f"Deleted knowledge base {knowledge_base_id}")

    # -- documents --------------------------------------------------------

    async def list_documents(self, knowledge_base_id: int) -> list[Document]:
        return (
            await self._call(
                "/document/read",
                list[Document],
                json={"knowledge_base_id": knowledge_base_id},
            )
            or []
        )

    async def upload_document(
        self,
        knowledge_base_id: int,
        filename: str,
        content: bytes,
        content_type: str | None = None,
    ) -> Any:
        """Upload a file into a knowledge base.

        Parsing is not started automatically; call ``start_parse``.
        """
        if not filename:
            raise PreconditionError("Filename is required")
        data = await self._call(
            "/document/upload",
            files={"file": (filename, content, content_type or "application/octet-stream")},
            data={"knowledge_base_id": str(knowledge_base_id)},
        )
        logger.info(f"Uploaded {filename} to knowledge base {knowledge_base_id}")
        return data

    async def start_parse(self, document_id: int) -> None:
        await self._call("/document/parse/start", json={"id": document_id})

    async def reparse(self, document_id: int) -> None:
        """Drop a document's parsed data and parse it again."""
        await self._call("/document/parse/reparse", json={"id": document_id})

    async def wait_for_parse(
        self,
        knowledge_base_id: int,
        document_id: int,
        interval: float | None = None,
        timeout: float | None = None,
    ) -> Document:
        """Poll until a document reaches ``completed`` or ``failed``.

        Args:
            knowledge_base_id: Knowledge base holding the document.
            document_id: Document being parsed.
            interval: Seconds between polls. Defaults to the configured value.
            timeout: Maximum seconds to wait. Defaults to the configured value.

        Returns:
            The document in its terminal state.

        Raises:
            TransportError: If the parse does not finish in time.
        """
        interval = interval if interval is not None else self._config.parse_poll_interval
        timeout = timeout if timeout is not None else self._config.parse_timeout
        deadline = time.monotonic() + timeout

        while True:
            await asyncio.sleep(interval)
            documents = await self.list_documents(knowledge_base_id)
            document = next((d for d in documents if d.id == document_id), None)
            if document is not None and document.is_parsed:
                logger.info(f"Document {document_id} finished parsing: {document.status}")
                return document
            if time.monotonic() >= deadline:
                raise TransportError(f"Timed out waiting for document {document_id} to parse")

    async def delete_document(self, document_id: int) -> None:
        await self._call("/document/delete", json={"id": document_id})
        logger.info(f"Deleted document {document_id}")

    async def download_document(self, document_id: int, fallback_name: str | None = None) -> DownloadedFile:
        return await self._download(
            "/document/download",
            fallback_name or f"document_{document_id}.pdf",
            json={"id": document_id},
        )

    # -- reports and carbon data ------------------------------------------

    async def download_report(self, company_name: str) -> DownloadedFile:
        if not company_name or not company_name.strip():
            raise PreconditionError("Please enter a company name")
        return await self._download(
            "/download_report",
            f"{company_name.strip()}_report.docx",
            json={"company_name": company_name.strip()},
        )

    async def download_template(self) -> DownloadedFile:
        return await self._download("/download_template", "template.xlsx", method="GET")

    async def fetch_company_list(self) -> list[dict[str, Any]]:
        return await self._call("/fetch_compony_list", list[dict[str, Any]], method="GET") or []

    async def company_by_name(self, company_name: str) -> dict[str, Any] | None:
        return await self._call(
            "/company_by_name",
            dict[str, Any],
            json={"company_name": company_name},
        )

    async def import_carbon_data(
        self,
        payload: DataImportPayload,
        user_id: str | int | None = None,
    ) -> Any:
        """Submit a complete intake payload in one transaction."""
        body = payload.model_dump(by_alias=True, exclude_none=True)
        if user_id is not None:
            body["user_id"] = user_id
        data = await self._call("/import_carbon_data", json=body)
        logger.info(f"Imported carbon data for {payload.company.f_company_number if payload.company else '?'}")
        return data


# Module-level singleton instance shared by the UI pages
_api_client: RagApiClient | None = None


def get_api_client() -> RagApiClient:
    """Get or create the global API client.

    Returns:
        The RagApiClient instance.
    """
    global _api_client
    if _api_client is None:
        _api_client = RagApiClient()
    return _api_client


async def close_api_client() -> None:
    """Close the global API client, if one was created."""
    global _api_client
    if _api_client is not None:
        await _api_client.aclose()
        _api_client = None
