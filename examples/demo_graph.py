"""
Walkthrough script for the news knowledge graph.

Builds a small graph from hand-labelled articles in a temporary directory,
shows the relationships and lookups, then asks a question (requires a
running Ollama server for the final step).
"""

import sys
import tempfile
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from newsgraph.config import Config
from newsgraph.main_pipeline import KnowledgeGraphSystem
from newsgraph.storage.graph_persistence import GraphPersistence
from newsgraph.storage.tagged_articles import TaggedArticleStorage


SAMPLE_ARTICLES = [
    {
        'id': 'lithium-supply-chain',
        'title': 'Lithium Supply Chain',
        'url': 'https://example.com/lithium-supply-chain',
        'labels': {
            'categories': ['Business', 'Energy'],
            'topics': ['Lithium', 'Supply Chain'],
            'keywords': ['lithium', 'refining', 'batteries', 'china'],
            'entities': {'organizations': ['Albemarle']},
            'sentiment': 'neutral',
            'summary': 'Refining capacity remains the bottleneck in the lithium supply chain.'
        }
    },
    {
        'id': 'chile-lithium',
        'title': 'Chile expands lithium mining',
        'url': 'https://example.com/chile-lithium',
        'labels': {
            'categories': ['Business'],
            'topics': ['lithium', 'Mining'],
            'keywords': ['lithium', 'chile', 'mining', 'batteries'],
            'entities': {'organizations': ['SQM']},
            'sentiment': 'positive',
            'summary': 'Chile approved two new lithium projects in the Atacama.'
        }
    },
    {
        'id': 'battery-recycling',
        'title': 'Battery recycling startups raise funds',
        'url': 'https://example.com/battery-recycling',
        'labels': {
            'categories': ['Technology', 'Business'],
            'topics': ['Recycling', 'Batteries'],
            'keywords': ['batteries', 'recycling', 'lithium', 'funding'],
            'sentiment': 'positive',
            'summary': 'Recycling could supply a share of battery metals by 2030.'
        }
    },
    {
        'id': 'cup-final',
        'title': 'Cup final ends in penalties',
        'url': 'https://example.com/cup-final',
        'labels': {
            'categories': ['Sports'],
            'topics': ['Football'],
            'keywords': ['football', 'final', 'penalties'],
            'sentiment': 'neutral',
            'summary': 'The final was decided by a penalty shoot-out.'
        }
    },
]


def main():
    """Run the walkthrough."""
    print("=" * 80)
    print("News Knowledge Graph - Walkthrough")
    print("=" * 80)
    print()

    with tempfile.TemporaryDirectory() as tmpdir:
        system = KnowledgeGraphSystem(
            config=Config(),
            persistence=GraphPersistence(str(Path(tmpdir) / 'graph.json')),
            tagged_storage=TaggedArticleStorage(str(Path(tmpdir) / 'tagged')),
            load_on_start=False
        )

        print("Step 1: Sync Articles")
        print("-" * 80)
        result = system.sync_articles(SAMPLE_ARTICLES, show_progress=False)
        print(f"✓ Nodes added: {result['nodes_added']}")
        print(f"✓ Relationships created: {result['relationships_created']}")
        print()

        print("Step 2: Relationships")
        print("-" * 80)
        for edge in system.get_relationships('lithium-supply-chain'):
            print(f"  {edge['from']} -[{edge['type']}]-> {edge['to']} "
                  f"(strength {edge['metadata']['strength']})")
        print()

        print("Step 3: Similar Articles")
        print("-" * 80)
        for similar in system.find_similar('chile-lithium'):
            print(f"  {similar['title']}: {similar['similarity']}")
        print()

        print("Step 4: Topic Lookup")
        print("-" * 80)
        for match in system.query_topic('lithium'):
            print(f"  {match['title']} (relevance {match['relevance']})")
        print()

        print("Step 5: Question Answering")
        print("-" * 80)
        answer = system.answer_query('What is happening in the lithium supply chain?')
        print(answer['answer'])
        for i, source in enumerate(answer['sources'], 1):
            print(f"  [{i}] {source['title']} (score {source['relevance_score']})")
        print()

        stats = system.get_stats()
        print("=" * 80)
        print(f"Graph: {stats['total_nodes']} nodes, {stats['total_edges']} edges")
        print("=" * 80)


if __name__ == '__main__':
    main()
