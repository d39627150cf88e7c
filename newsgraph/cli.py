"""
Command-Line Interface for the News Knowledge Graph

Provides user-friendly CLI commands for:
- Article labelling and graph ingestion (single, by id, full sync)
- Similar article, topic and keyword lookup
- RAG-based question answering
- Graph statistics
- Graph persistence (save/load/info/backup/clear)
"""

import sys
import json
import argparse
import logging
from pathlib import Path

from .ingestion.labeller import LabellerConnectionError
from .main_pipeline import KnowledgeGraphSystem


def setup_logging(verbose: bool = False):
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def _read_articles(file_path: str):
    """Read one article or a list of articles from a JSON file."""
    if not Path(file_path).exists():
        print(f"✗ Error: File not found: {file_path}")
        sys.exit(1)

    with open(file_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    return data if isinstance(data, list) else [data]


def cmd_add(args):
    """Handle the add command."""
    system = KnowledgeGraphSystem()

    articles = _read_articles(args.file)
    print(f"Adding {len(articles)} article(s) from: {args.file}")

    failed = 0
    for article in articles:
        result = system.add_article(article)
        if result['success']:
            print(f"✓ Added {result['node']['id']}: {result['node']['title']}")
            print(f"  Relationships created: {result['relationships_created']}")
        else:
            failed += 1
            print(f"✗ Failed to add article: {result.get('error', 'Unknown error')}")

    if failed:
        sys.exit(1)


def cmd_add_id(args):
    """Handle the add-id command."""
    system = KnowledgeGraphSystem()

    result = system.add_article_by_id(args.article_id)

    if result['success']:
        print(f"✓ Added {result['node']['id']}: {result['node']['title']}")
        print(f"  Relationships created: {result['relationships_created']}")
    else:
        print(f"✗ Failed to add article: {result.get('error', 'Unknown error')}")
        sys.exit(1)


def cmd_sync(args):
    """Handle the sync command."""
    system = KnowledgeGraphSystem()

    print("Syncing tagged articles to graph...")
    result = system.sync_articles(show_progress=True)

    print(f"\n{'='*60}")
    print(f"Sync Summary:")
    print(f"  Nodes added: {result['nodes_added']}")
    print(f"  Relationships created: {result['relationships_created']}")
    print(f"  Failed: {len(result['failed'])}")
    print(f"  Processing time: {result['processing_time']:.2f}s")
    print(f"{'='*60}")


def cmd_label(args):
    """Handle the label command."""
    system = KnowledgeGraphSystem()

    articles = _read_articles(args.file)

    try:
        system.labeller.verify_connection()
    except LabellerConnectionError as e:
        print(f"✗ {e}")
        sys.exit(1)

    print(f"Labelling {len(articles)} article(s) from: {args.file}")

    failed = 0
    for result in system.label_articles(articles):
        if result['success']:
            labels = result['tagged_article']['labels']
            print(f"✓ Labelled {result['article_id']}")
            print(f"  Categories: {', '.join(labels.get('categories', []))}")
            print(f"  Topics: {', '.join(labels.get('topics', []))}")
            if args.add:
                added = system.add_article(result['tagged_article'])
                if added['success']:
                    print(f"  Relationships created: {added['relationships_created']}")
        else:
            failed += 1
            print(f"✗ Failed to label {result['article_id']}: {result.get('error', 'Unknown error')}")

    if failed:
        sys.exit(1)


def cmd_similar(args):
    """Handle the similar command."""
    system = KnowledgeGraphSystem()

    results = system.find_similar(args.article_id, limit=args.limit)

    if not results:
        print("No similar articles found.")
        return

    print(f"Found {len(results)} similar articles:\n")
    for i, result in enumerate(results, 1):
        print(f"[{i}] {result['title']} ({result['article_id']})")
        print(f"    Similarity: {result['similarity']}")
        if result['shared_topics']:
            print(f"    Shared topics: {', '.join(result['shared_topics'])}")
        if result['shared_keywords']:
            print(f"    Shared keywords: {', '.join(result['shared_keywords'])}")
        print()


def cmd_relationships(args):
    """Handle the relationships command."""
    system = KnowledgeGraphSystem()

    relationships = system.get_relationships(args.article_id, args.type)

    print(f"Relationships for {args.article_id}: {len(relationships)}\n")
    for edge in relationships:
        strength = edge['metadata'].get('strength')
        suffix = f" (strength {strength})" if strength is not None else ""
        print(f"  {edge['from']} -[{edge['type']}]-> {edge['to']}{suffix}")


def cmd_topic(args):
    """Handle the topic command."""
    system = KnowledgeGraphSystem()

    results = system.query_topic(args.term, limit=args.limit)

    if not results:
        print("No results found.")
        return

    print(f"Found {len(results)} results:\n")
    for i, result in enumerate(results, 1):
        print(f"[{i}] {result['title']}")
        print(f"    URL: {result['url']}")
        print(f"    Relevance: {result['relevance']}")
        if result['matched_topics']:
            print(f"    Matched topics: {', '.join(result['matched_topics'])}")
        print()


def cmd_keyword(args):
    """Handle the keyword command."""
    system = KnowledgeGraphSystem()

    results = system.query_keyword(args.term, limit=args.limit)

    if not results:
        print("No results found.")
        return

    print(f"Found {len(results)} results:\n")
    for i, result in enumerate(results, 1):
        print(f"[{i}] {result['title']}")
        print(f"    URL: {result['url']}")
        print(f"    Matches: {result['match_count']} ({', '.join(result['matched_keywords'])})")
        print()


def cmd_ask(args):
    """Handle the ask command."""
    system = KnowledgeGraphSystem()

    print(f"Question: {args.query}")
    print()

    result = system.answer_query(args.query, max_sources=args.max_sources)

    print("Answer:")
    print(f"{result['answer']}")
    print()

    if result.get('sources'):
        print("Sources:")
        for i, source in enumerate(result['sources'], 1):
            print(f"  [{i}] {source['title']} (score {source['relevance_score']})")
            print(f"      {source['url']}")
        print()

    metadata = result['metadata']
    print(f"Articles searched: {metadata['total_articles_searched']}")
    print(f"Response time: {result['response_time']:.2f}s")


def cmd_stats(args):
    """Handle the stats command."""
    system = KnowledgeGraphSystem()

    stats = system.get_stats()

    print("="*60)
    print("Knowledge Graph Statistics")
    print("="*60)
    print(f"Total Nodes: {stats['total_nodes']}")
    print(f"Total Edges: {stats['total_edges']}")
    print(f"Tagged Articles: {stats['tagged_articles']}")
    print()

    for title, key in (
        ("Relationship Types", 'relationship_type_counts'),
        ("Categories", 'category_counts'),
        ("Sentiment", 'sentiment_counts'),
    ):
        print(f"{title}:")
        counts = stats[key]
        if not counts:
            print("  (none)")
        for name, count in sorted(counts.items(), key=lambda item: -item[1]):
            print(f"  {name}: {count}")
        print()
    print("="*60)


def cmd_save(args):
    """Handle the save command."""
    system = KnowledgeGraphSystem(auto_save=False)

    result = system.save_graph()

    if result['success']:
        print(f"✓ Graph saved to: {result['path']}")
    else:
        print(f"✗ Failed to save graph: {result.get('error', 'Unknown error')}")
        sys.exit(1)


def cmd_load(args):
    """Handle the load command."""
    system = KnowledgeGraphSystem(load_on_start=False)

    result = system.load_graph()

    if result['success']:
        print("✓ Graph loaded from disk")
        print(f"  Nodes: {result['stats']['total_nodes']}")
        print(f"  Edges: {result['stats']['total_edges']}")
    else:
        print(f"✗ Failed to load graph: {result.get('error') or result.get('message')}")
        sys.exit(1)


def cmd_info(args):
    """Handle the info command."""
    system = KnowledgeGraphSystem(load_on_start=False)

    info = system.get_graph_info()

    if not info['exists']:
        print("No saved graph found.")
        return

    print(f"Path: {info['path']}")
    print(f"  Size: {info['size'] / 1024:.1f} KB")
    print(f"  Saved at: {info.get('saved_at', 'N/A')}")
    print(f"  Nodes: {info['node_count']}")
    print(f"  Edges: {info['edge_count']}")


def cmd_backup(args):
    """Handle the backup command."""
    system = KnowledgeGraphSystem(load_on_start=False)

    result = system.backup_graph()

    if result['success']:
        print(f"✓ Graph backed up to: {result['backup_file']}")
    else:
        print(f"✗ Failed to backup graph: {result.get('error', 'Unknown error')}")
        sys.exit(1)


def cmd_clear(args):
    """Handle the clear command."""
    if not args.yes:
        print("✗ Refusing to clear the graph without --yes")
        sys.exit(1)

    system = KnowledgeGraphSystem()
    system.clear()
    print("✓ Graph cleared")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description='News Knowledge Graph - Article linking and question answering',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Label raw articles and add them to the graph
  python -m newsgraph.cli label articles.json --add

  # Sync all tagged articles into the graph
  python -m newsgraph.cli sync

  # Find articles similar to one article
  python -m newsgraph.cli similar article-123

  # Look up articles by topic
  python -m newsgraph.cli topic "supply chain"

  # Ask a question
  python -m newsgraph.cli ask "What is happening with lithium supply chains?"

  # View statistics
  python -m newsgraph.cli stats
        """
    )

    # Global arguments
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    add_parser = subparsers.add_parser('add', help='Add labelled articles from a JSON file')
    add_parser.add_argument('file', help='JSON file with one article or a list of articles')
    add_parser.set_defaults(func=cmd_add)

    add_id_parser = subparsers.add_parser('add-id', help='Add a tagged article by id')
    add_id_parser.add_argument('article_id', help='Tagged article id')
    add_id_parser.set_defaults(func=cmd_add_id)

    sync_parser = subparsers.add_parser('sync', help='Sync all tagged articles into the graph')
    sync_parser.set_defaults(func=cmd_sync)

    label_parser = subparsers.add_parser('label', help='Label raw articles from a JSON file')
    label_parser.add_argument('file', help='JSON file with one article or a list of articles')
    label_parser.add_argument(
        '--add',
        action='store_true',
        help='Add labelled articles to the graph'
    )
    label_parser.set_defaults(func=cmd_label)

    similar_parser = subparsers.add_parser('similar', help='Find similar articles')
    similar_parser.add_argument('article_id', help='Article id')
    similar_parser.add_argument(
        '--limit',
        type=int,
        default=5,
        help='Number of results to return (default: 5)'
    )
    similar_parser.set_defaults(func=cmd_similar)

    rel_parser = subparsers.add_parser('relationships', help='List article relationships')
    rel_parser.add_argument('article_id', help='Article id')
    rel_parser.add_argument('--type', help='Relationship type filter')
    rel_parser.set_defaults(func=cmd_relationships)

    topic_parser = subparsers.add_parser('topic', help='Look up articles by topic')
    topic_parser.add_argument('term', help='Topic search term')
    topic_parser.add_argument(
        '--limit',
        type=int,
        default=10,
        help='Number of results to return (default: 10)'
    )
    topic_parser.set_defaults(func=cmd_topic)

    keyword_parser = subparsers.add_parser('keyword', help='Look up articles by keyword')
    keyword_parser.add_argument('term', help='Keyword search term')
    keyword_parser.add_argument(
        '--limit',
        type=int,
        default=10,
        help='Number of results to return (default: 10)'
    )
    keyword_parser.set_defaults(func=cmd_keyword)

    ask_parser = subparsers.add_parser(
        'ask',
        help='Ask a question and get an AI-generated answer'
    )
    ask_parser.add_argument('query', help='Question to ask')
    ask_parser.add_argument(
        '--max-sources',
        type=int,
        default=None,
        help='Number of source articles to use'
    )
    ask_parser.set_defaults(func=cmd_ask)

    stats_parser = subparsers.add_parser('stats', help='Display graph statistics')
    stats_parser.set_defaults(func=cmd_stats)

    save_parser = subparsers.add_parser('save', help='Save the graph to disk')
    save_parser.set_defaults(func=cmd_save)

    load_parser = subparsers.add_parser('load', help='Load the graph from disk')
    load_parser.set_defaults(func=cmd_load)

    info_parser = subparsers.add_parser('info', help='Show saved graph file info')
    info_parser.set_defaults(func=cmd_info)

    backup_parser = subparsers.add_parser('backup', help='Back up the saved graph')
    backup_parser.set_defaults(func=cmd_backup)

    clear_parser = subparsers.add_parser('clear', help='Clear the entire graph')
    clear_parser.add_argument(
        '--yes',
        action='store_true',
        help='Confirm clearing the graph'
    )
    clear_parser.set_defaults(func=cmd_clear)

    return parser


def main():
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    # Setup logging
    setup_logging(args.verbose)

    # Execute command
    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        print(f"\n✗ Error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
