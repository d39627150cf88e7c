"""
Shared fixtures for the News Knowledge Graph test suite.
"""

import pytest


def build_article(
    article_id,
    title='Untitled',
    categories=None,
    topics=None,
    keywords=None,
    people=None,
    organizations=None,
    summary='',
    sentiment='neutral',
    url=None
):
    """Build a labelled article in the labeller's output shape."""
    return {
        'id': article_id,
        'title': title,
        'url': url or f'https://example.com/{article_id}',
        'author': 'Test Author',
        'labels': {
            'categories': categories or [],
            'topics': topics or [],
            'keywords': keywords or [],
            'entities': {
                'people': people or [],
                'organizations': organizations or [],
                'locations': [],
                'products': []
            },
            'sentiment': sentiment,
            'summary': summary,
            'contentType': 'news',
            'complexity': 'intermediate',
            'readingTime': '4'
        }
    }


@pytest.fixture
def make_article():
    """Factory fixture for labelled articles."""
    return build_article
