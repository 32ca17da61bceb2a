"""
Page Memory: short per-page context strings that give the model continuity
across a multi-page document.

The memory is a plain ``Dict[int, str]`` owned by the caller. Entries are
overwritten, never removed.
"""
from typing import Dict, List

PageMemory = Dict[int, str]

DEFAULT_WINDOW = 3


def page_context(page_number: int) -> str:
    return f"Page {page_number} context"


def record_page(memory: PageMemory, page_number: int) -> None:
    """Store the placeholder context for ``page_number`` (idempotent)."""
    memory[page_number] = page_context(page_number)


def recent_pages(memory: PageMemory, page_number: int, window: int = DEFAULT_WINDOW) -> List[str]:
    """
    Lines for pages in ``[page_number - window, page_number)``, in the order
    they were stored. Later pages and older pages are left out.
    """
    return [
        f"Page {page}: {context}"
        for page, context in memory.items()
        if page < page_number and page >= page_number - window
    ]
