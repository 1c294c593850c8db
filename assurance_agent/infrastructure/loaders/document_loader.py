"""
Loaders turning files and web pages into knowledge base input.

Uploads and local files may be plain text, Markdown or PDF. Web pages are
fetched over HTTP; HTML is reduced to its main text, text/plain and
text/markdown are taken as-is. Anything else is rejected with
UnsupportedDocumentError; network failures raise DocumentFetchError.
"""

from typing import Dict, Any, List, Optional
from pathlib import Path
from urllib.parse import urlparse
import io
import re
import httpx
import structlog
from bs4 import BeautifulSoup
from pypdf import PdfReader
from pypdf.errors import PyPdfError

from assurance_agent.domain.errors import DocumentFetchError, UnsupportedDocumentError

logger = structlog.get_logger(__name__)

SUPPORTED_EXTENSIONS = {".txt": "text", ".md": "markdown", ".pdf": "pdf"}

# Page chrome dropped before extracting the main text of an HTML page
HTML_NOISE_TAGS = ["script", "style", "nav", "header", "footer", "aside"]
# Main-content candidates, most specific first
HTML_MAIN_SELECTORS = ("main", "article", ".content", "#content", "body")

USER_AGENT = "Mozilla/5.0 (compatible; AssuranceAgent/1.0)"


def document_type_for(filename: str) -> str:
    """Knowledge document type for a filename, or raise"""

    extension = Path(filename).suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        allowed = ", ".join(sorted(SUPPORTED_EXTENSIONS))
        raise UnsupportedDocumentError(f"Unsupported file type '{extension or filename}'. Allowed: {allowed}")
    return SUPPORTED_EXTENSIONS[extension]


def extract_pdf_text(filename: str, data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PyPdfError, ValueError) as e:
        raise UnsupportedDocumentError(f"File '{filename}' is not a readable PDF: {e}") from e

    text = "\n\n".join(page.strip() for page in pages if page.strip())
    if not text:
        raise UnsupportedDocumentError(f"File '{filename}' has no extractable text")

    logger.info("Extracted PDF text", filename=filename, pages=len(pages), characters=len(text))
    return text


def decode_upload(filename: str, data: bytes) -> Dict[str, Any]:
    """Turn uploaded bytes into knowledge base input"""

    doc_type = document_type_for(filename)
    if doc_type == "pdf":
        content = extract_pdf_text(filename, data)
    else:
        try:
            content = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise UnsupportedDocumentError(f"File '{filename}' is not valid UTF-8 text") from e

    return {
        "content": content,
        "title": Path(filename).stem,
        "source": filename,
        "doc_type": doc_type
    }


def load_text_file(path: str) -> Dict[str, Any]:
    """Read a local .txt/.md/.pdf file into knowledge base input"""

    file_path = Path(path)
    if not file_path.is_file():
        raise UnsupportedDocumentError(f"File not found: {path}")

    document = decode_upload(file_path.name, file_path.read_bytes())
    document["source"] = str(file_path)

    logger.info("Loaded file", path=str(file_path), characters=len(document["content"]))
    return document


def load_directory(path: str) -> List[Dict[str, Any]]:
    """Load every supported file under a directory, sorted by path"""

    root = Path(path)
    if not root.is_dir():
        logger.warning("Knowledge base directory not found", path=path)
        return []

    documents = []
    for file_path in sorted(root.rglob("*")):
        if file_path.is_file() and file_path.suffix.lower() in SUPPORTED_EXTENSIONS:
            documents.append(load_text_file(str(file_path)))
    return documents


def html_to_text(html: str) -> Dict[str, Optional[str]]:
    """Title and whitespace-collapsed main text of an HTML page"""

    soup = BeautifulSoup(html, "html.parser")
    title = soup.title.get_text(strip=True) if soup.title else None

    for tag in soup(HTML_NOISE_TAGS):
        tag.decompose()

    main = next(
        (found for found in (soup.select_one(selector) for selector in HTML_MAIN_SELECTORS) if found is not None),
        soup
    )
    text = re.sub(r"\s+", " ", main.get_text(" ")).strip()
    return {"title": title or None, "text": text}


async def load_url(
    url: str,
    timeout: float = 30.0,
    max_bytes: Optional[int] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> Dict[str, Any]:
    """Fetch a web page into knowledge base input"""

    if urlparse(url).scheme not in ("http", "https"):
        raise UnsupportedDocumentError(f"Only http and https URLs can be loaded: {url}")

    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT}
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("Failed to fetch URL", url=url, error=str(e))
        raise DocumentFetchError(url, str(e)) from e

    if max_bytes is not None and len(response.content) > max_bytes:
        raise UnsupportedDocumentError(f"Page at {url} exceeds {max_bytes} bytes")

    content_type = response.headers.get("content-type", "").lower()

    if "text/html" in content_type:
        page = html_to_text(response.text)
        content, title = page["text"], page["title"] or url
    elif "text/plain" in content_type or "text/markdown" in content_type:
        content = response.text
        title = urlparse(url).path.rstrip("/").rsplit("/", 1)[-1] or url
    else:
        raise UnsupportedDocumentError(f"Unsupported content type '{content_type or 'unknown'}' at {url}")

    logger.info("Loaded URL", url=url, content_type=content_type, characters=len(content))
    return {
        "content": content,
        "title": title,
        "source": url,
        "doc_type": "url"
    }
