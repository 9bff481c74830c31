"""Links into the Monad developer documentation."""

from typing import Optional
from urllib.parse import quote

from monad_mcp.constants import DOCS_BASE_URL, DOCS_SECTIONS
from monad_mcp.utils.errors import ValidationError


def docs_index(query: Optional[str] = None) -> str:
    """Return the documentation index, or a search link for a query."""
    if not query or not query.strip():
        sections = "\n".join(
            f"- {title}: {DOCS_BASE_URL}/{path}" for title, path in DOCS_SECTIONS.items()
        )
        return f"Monad Documentation: {DOCS_BASE_URL}\n\nKey sections:\n{sections}"

    query = query.strip()
    return f'Search for "{query}" in Monad docs: {DOCS_BASE_URL}/search?q={quote(query, safe="")}'


def docs_section(section: str) -> str:
    """Return the URL of a documentation section path.

    Raises:
        ValidationError: If the section path is empty or escapes the docs site
    """
    path = (section or "").strip().strip("/")
    if not path:
        raise ValidationError("Documentation section must not be empty")
    if "://" in path or ".." in path.split("/"):
        raise ValidationError(f"Invalid documentation section: {section!r}")

    return (
        f"Documentation section: {path}\n"
        f"URL: {DOCS_BASE_URL}/{quote(path)}\n\n"
        "Open the URL to read the section; the server does not fetch documentation pages."
    )
