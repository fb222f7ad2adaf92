"""Context assembly — turns retrieved passages into prompt-ready text."""

from textbook_qa.models import ContextBlock, RetrievedPassage

NO_CONTENT_SENTINEL = "No relevant content was found in this textbook."

# A rule of repeated '=' on its own line; unlikely inside textbook prose.
CONTEXT_SEPARATOR = "\n\n=====\n\n"


def context_blocks(passages: list[RetrievedPassage]) -> list[ContextBlock]:
    """Label passages with a 1-based index, keeping the order received.

    Passages are not re-sorted; ordering is the retrieval backend's concern.
    """
    return [
        ContextBlock(index=i, page_number=p.page_number, content=p.content)
        for i, p in enumerate(passages, 1)
    ]


def render_context(blocks: list[ContextBlock]) -> str:
    """Serialize context blocks into a single string for the prompt.

    Each block gets a ``[Passage N - page P]`` header so the model can
    attribute claims to pages. An empty list renders as
    ``NO_CONTENT_SENTINEL``.
    """
    if not blocks:
        return NO_CONTENT_SENTINEL
    parts = [
        f"[Passage {b.index} - page {b.page_number}]\n{b.content}" for b in blocks
    ]
    return CONTEXT_SEPARATOR.join(parts)


def build_context(passages: list[RetrievedPassage]) -> str:
    """Build the prompt context for a list of retrieved passages."""
    return render_context(context_blocks(passages))
