"""Binary download helpers.

Download endpoints answer with raw bytes and suggest a filename through
``Content-Disposition``. RFC 5987 ``filename*=UTF-8''...`` wins over a plain
``filename=`` token.
"""

import logging
import re
from urllib.parse import unquote

import httpx

from ragdesk.chat.errors import TransportError
from ragdesk.models.schemas import DownloadedFile

logger = logging.getLogger(__name__)

_EXTENDED_FILENAME = re.compile(r"filename\*\s*=\s*([^']*)'[^']*'([^;]+)", re.IGNORECASE)
_PLAIN_FILENAME = re.compile(r'filename\s*=\s*("(?:[^"\\]|\\.)*"|[^;]+)', re.IGNORECASE)


def parse_content_disposition(header: str | None, default: str) -> str:
    """Extract the suggested filename from a Content-Disposition header.

    Args:
        header: Raw header value, may be None.
        default: Name to use when the header carries none.

    Returns:
        The decoded filename, or ``default``.
    """
    if not header:
        return default

    match = _EXTENDED_FILENAME.search(header)
    if match:
        charset = match.group(1).strip() or "utf-8"
        try:
            name = unquote(match.group(2).strip().strip('"'), encoding=charset, errors="strict")
        except (LookupError, UnicodeDecodeError) as e:
            logger.warning(f"Undecodable filename* in Content-Disposition: {e}")
        else:
            if name:
                return name

    match = _PLAIN_FILENAME.search(header)
    if match:
        name = match.group(1).strip()
        if len(name) >= 2 and name[0] == name[-1] == '"':
            name = name[1:-1].replace('\\"', '"')
        if name:
            return name

    return default


def to_downloaded_file(response: httpx.Response, default_name: str) -> DownloadedFile:
    """Wrap a successful binary response.

    Raises:
        TransportError: If the body is empty.
    """
    if not response.content:
        raise TransportError("Downloaded file is empty")

    filename = parse_content_disposition(response.headers.get("content-disposition"), default_name)
    return DownloadedFile(
        filename=filename,
        content=response.content,
        content_type=response.headers.get("content-type"),
    )
