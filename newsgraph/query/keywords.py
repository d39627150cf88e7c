"""
Query Keyword Extraction
"""

import re
from typing import List

MAX_KEYWORDS = 10
MIN_KEYWORD_LENGTH = 3

STOP_WORDS = frozenset({
    'about', 'above', 'after', 'again', 'against', 'all', 'also', 'and',
    'any', 'are', 'because', 'been', 'before', 'being', 'below', 'between',
    'both', 'but', 'can', 'could', 'did', 'does', 'doing', 'down', 'during',
    'each', 'few', 'for', 'from', 'further', 'had', 'has', 'have', 'having',
    'her', 'here', 'hers', 'herself', 'him', 'himself', 'his', 'how', 'into',
    'its', 'itself', 'just', 'latest', 'more', 'most', 'news', 'nor', 'not',
    'now', 'off', 'once', 'only', 'other', 'our', 'ours', 'ourselves', 'out',
    'over', 'own', 'same', 'she', 'should', 'some', 'such', 'tell', 'than',
    'that', 'the', 'their', 'theirs', 'them', 'themselves', 'then', 'there',
    'these', 'they', 'this', 'those', 'through', 'too', 'under', 'until',
    'very', 'was', 'were', 'what', 'when', 'where', 'which', 'while', 'who',
    'whom', 'why', 'will', 'with', 'would', 'you', 'your', 'yours',
    'yourself', 'yourselves',
})

_NON_WORD = re.compile(r'[^\w\s]')


def extract_keywords(query: str, max_keywords: int = MAX_KEYWORDS) -> List[str]:
    """
    Extract search keywords from a free-text query.

    Lowercases the query, strips punctuation, drops short tokens and stop
    words, and keeps the first ``max_keywords`` survivors in query order.

    Args:
        query: Free-text query
        max_keywords: Maximum number of keywords to keep

    Returns:
        List of keywords
    """
    cleaned = _NON_WORD.sub('', query.lower())

    keywords = [
        token for token in cleaned.split()
        if len(token) >= MIN_KEYWORD_LENGTH and token not in STOP_WORDS
    ]
    return keywords[:max_keywords]
