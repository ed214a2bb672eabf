"""
Sentence-aware text chunking.

Long documents are summarized chunk by chunk. Chunks are cut at most
``chunk_size`` characters long, preferring the last sentence ending within
the final 500 characters of the window so sentences are not split.
"""

SENTENCE_ENDINGS = (". ", "! ", "? ", ".\n", "!\n", "?\n")
BOUNDARY_SEARCH_WINDOW = 500


def split_into_chunks(text: str, chunk_size: int = 4000) -> list[str]:
    """
    Split text into stripped chunks of at most ``chunk_size`` characters.

    Args:
        text: Full document text
        chunk_size: Maximum characters per chunk

    Returns:
        Chunks in document order (empty list for empty text)
    """
    chunks: list[str] = []
    remaining = text

    while remaining:
        if len(remaining) <= chunk_size:
            chunks.append(remaining)
            break

        search_start = max(0, chunk_size - BOUNDARY_SEARCH_WINDOW)
        search_area = remaining[search_start:chunk_size]
        last_boundary = max(search_area.rfind(ending) for ending in SENTENCE_ENDINGS)

        break_point = chunk_size
        if last_boundary > 0:
            # Keep the punctuation, drop the following whitespace
            break_point = search_start + last_boundary + 2

        chunks.append(remaining[:break_point].strip())
        remaining = remaining[break_point:].strip()

    return chunks
