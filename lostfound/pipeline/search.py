"""Free-text search across item reports."""

import logging

from lostfound.core.schemas import Item, SearchHit

logger = logging.getLogger(__name__)

PHRASE_BONUS = 50
WORD_BONUS = 10
MIN_QUERY_LENGTH = 2


def search_items(query: str, items: list[Item], limit: int = 20) -> list[SearchHit]:
    """Rank items by how well their text contains the query.

    The whole query found in an item's text scores PHRASE_BONUS; each query
    word longer than two characters found anywhere adds WORD_BONUS.

    Raises:
        ValueError: If the query is shorter than MIN_QUERY_LENGTH.
    """
    query_text = query.strip().lower()
    if len(query_text) < MIN_QUERY_LENGTH:
        msg = f"query must be at least {MIN_QUERY_LENGTH} characters long"
        raise ValueError(msg)

    query_words = [w for w in query_text.split() if len(w) > 2]
    hits: list[SearchHit] = []
    for item in items:
        haystack = f"{item.title} {item.description} {item.category} {item.location}".lower()
        score = 0
        if query_text in haystack:
            score += PHRASE_BONUS
        score += WORD_BONUS * sum(1 for w in query_words if w in haystack)
        if score > 0:
            hits.append(SearchHit(item=item, score=score))

    hits.sort(key=lambda h: h.score, reverse=True)
    logger.debug("Search '%s': %d hits out of %d items", query_text, len(hits), len(items))
    return hits[:limit]
