import asyncio
import httpx
import pytest

from assurance_agent.domain.errors import DocumentFetchError, UnsupportedDocumentError
from assurance_agent.infrastructure.loaders.document_loader import (
    decode_upload, html_to_text, load_directory, load_url
)

from fakes import minimal_pdf

PAGE = (
    "<html><head><title>Edge Guide</title><script>var tracking = 1;</script></head>"
    "<body><nav>Menu</nav><main><h1>Errors</h1><p>Check   the\n status code.</p></main>"
    "<footer>Copyright</footer></body></html>"
)


def _transport(body: bytes, content_type: str, status: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, content=body, headers={"content-type": content_type})
    return httpx.MockTransport(handler)


def test_pdf_upload_is_extracted():
    loaded = decode_upload("edge-guide.pdf", minimal_pdf("Edge errors guide"))

    assert loaded["doc_type"] == "pdf"
    assert loaded["title"] == "edge-guide"
    assert loaded["source"] == "edge-guide.pdf"
    assert "Edge errors guide" in loaded["content"]


def test_malformed_pdf_is_rejected():
    with pytest.raises(UnsupportedDocumentError):
        decode_upload("broken.pdf", b"not a pdf at all")


def test_directory_includes_pdfs(tmp_path):
    (tmp_path / "a.txt").write_text("A")
    (tmp_path / "b.pdf").write_bytes(minimal_pdf("Consent settings"))

    documents = load_directory(str(tmp_path))

    assert [d["doc_type"] for d in documents] == ["text", "pdf"]
    assert "Consent settings" in documents[1]["content"]


def test_html_main_text():
    page = html_to_text(PAGE)

    assert page["title"] == "Edge Guide"
    assert page["text"] == "Errors Check the status code."


def test_html_without_main_uses_body():
    page = html_to_text("<body><header>Top</header><p>Only   body</p></body>")

    assert page["title"] is None
    assert page["text"] == "Only body"


def test_load_html_page():
    url = "https://docs.example.com/assurance/edge"
    loaded = asyncio.run(load_url(url, transport=_transport(PAGE.encode(), "text/html; charset=utf-8")))

    assert loaded == {
        "content": "Errors Check the status code.",
        "title": "Edge Guide",
        "source": url,
        "doc_type": "url"
    }


def test_load_markdown_page():
    url = "https://docs.example.com/guides/setup.md"
    loaded = asyncio.run(load_url(url, transport=_transport(b"# Setup\nInstall the SDK.", "text/markdown")))

    assert loaded["content"] == "# Setup\nInstall the SDK."
    assert loaded["title"] == "setup.md"


def test_unsupported_content_type():
    with pytest.raises(UnsupportedDocumentError):
        asyncio.run(load_url("https://example.com/data", transport=_transport(b"{}", "application/json")))


def test_http_error_status():
    with pytest.raises(DocumentFetchError) as excinfo:
        asyncio.run(load_url("https://example.com/missing", transport=_transport(b"", "text/html", status=404)))

    assert excinfo.value.url == "https://example.com/missing"


def test_non_http_url_is_rejected():
    with pytest.raises(UnsupportedDocumentError):
        asyncio.run(load_url("ftp://example.com/guide.txt"))


def test_oversized_page_is_rejected():
    transport = _transport(b"x" * 100, "text/plain")

    with pytest.raises(UnsupportedDocumentError):
        asyncio.run(load_url("https://example.com/big.txt", max_bytes=10, transport=transport))


def test_main_element_wins_over_body_text():
    page = html_to_text("<body><p>Cookie banner</p><article><p>Article</p></article><main>Docs</main></body>")

    assert page["text"] == "Docs"
