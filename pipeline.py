#!/usr/bin/env python3
"""Main entry point for knowledge-base ingestion and question answering.

Usage:
  python pipeline.py ingest                              # Crawl, chunk, embed, store
  python pipeline.py query how do I request a refund     # Answer a question
  python pipeline.py vector-status                       # ChromaDB stats
  python pipeline.py vector-query "refund policy"        # Retrieval only

Configuration comes from the environment (or a .env file); see settings.py.
"""

import argparse
import logging
import os
import sys
from typing import Optional

from dotenv import load_dotenv

from settings import Settings

logger = logging.getLogger("pipeline")


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


# ---------------------------------------------------------------------------
# Client construction (once per process, passed to the pipelines)
# ---------------------------------------------------------------------------

def build_embedder(settings: Settings):
    from vectorstore.embedder import Embedder

    return Embedder(
        model=settings.embedding_model,
        dimensions=settings.embedding_dimensions,
        api_key=settings.embedding_key,
        base_url=settings.embedding_url,
    )


def build_store(settings: Settings):
    from vectorstore.store import VectorStore, make_client

    client = make_client(
        path=settings.chroma_path,
        host=settings.chroma_host,
        port=settings.chroma_port,
    )
    return VectorStore(
        client=client,
        collection_name=settings.collection_name,
        dimensions=settings.embedding_dimensions,
        mode=settings.store_mode,
    )


def build_llm(settings: Settings):
    from rag.llm_client import LLMClient

    return LLMClient(
        provider=settings.llm_provider,
        model=settings.llm_model,
        api_key=settings.llm_key,
        base_url=settings.llm_url,
    )


# ---------------------------------------------------------------------------
# INGEST
# ---------------------------------------------------------------------------

def cmd_ingest(args, settings: Settings) -> int:
    """Crawl the knowledge base and store every article's chunks."""
    from scrapers.docs_scraper import DocsScraper, SiteSelectors
    from scrapers.utils import RateLimiter
    from vectorstore.chunker import Chunker
    from vectorstore.ingest import IngestPipeline, print_summary

    if not settings.docs_url:
        print("DOCS_URL is not set; nothing to crawl.", file=sys.stderr)
        return 1

    scraper = DocsScraper(
        base_url=settings.docs_url,
        selectors=SiteSelectors(
            index=settings.index_selector,
            article_links=settings.article_link_selector,
            article=settings.article_selector,
            title=settings.title_selector,
        ),
        timeout=settings.fetch_timeout,
        rate_limiter=RateLimiter(min_delay=settings.fetch_delay_seconds),
    )
    chunker = Chunker(
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        unit=settings.chunk_unit,
        keep_separator=settings.chunk_keep_separator,
    )
    pipeline = IngestPipeline(
        scraper=scraper,
        chunker=chunker,
        embedder=build_embedder(settings),
        store=build_store(settings),
    )

    logger.info("Starting to scrape %s (languages: %s)", settings.docs_url, ", ".join(settings.languages))
    all_stats = pipeline.run(settings.languages)
    print_summary(all_stats)
    return 0


# ---------------------------------------------------------------------------
# QUERY
# ---------------------------------------------------------------------------

def cmd_query(args, settings: Settings) -> int:
    """Answer a question from the stored chunks."""
    from rag.query_engine import QueryEngine

    question = " ".join(args.question).strip()
    if not question:
        print("Please provide a query as a command line argument.", file=sys.stderr)
        return 1

    engine = QueryEngine(
        embedder=build_embedder(settings),
        store=build_store(settings),
        llm=build_llm(settings),
        top_k=settings.top_k,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
    )
    result = engine.answer(question)

    print("\n--- AI Response ---")
    print(result.answer)
    return 0


# ---------------------------------------------------------------------------
# VECTOR STORE
# ---------------------------------------------------------------------------

def cmd_vector_status(args, settings: Settings) -> int:
    """Show vector store statistics."""
    store = build_store(settings)
    stats = store.get_stats()

    print("\n" + "=" * 70)
    print("VECTOR STORE STATUS")
    print("=" * 70)

    for name, info in stats.items():
        print(f"\n  Collection: {name}")
        print(f"    Vectors stored: {info.get('count', 0)}")
        print(f"    Mode: {info.get('mode', '?')}")

    print("\n" + "=" * 70)
    return 0


def cmd_vector_query(args, settings: Settings) -> int:
    """Run a retrieval-only query against the vector store."""
    query = " ".join(args.query).strip()
    if not query:
        print("Please provide a query as a command line argument.", file=sys.stderr)
        return 1

    embedder = build_embedder(settings)
    store = build_store(settings)
    outcome = store.query_nearest(embedder.embed(query), args.top_k or settings.top_k)

    print(f"\nQuery: \"{query}\"")
    if not outcome.ok:
        print(f"Retrieval failed: {outcome.error}")
        return 1
    print(f"Results: {len(outcome.results)}")
    print("-" * 50)

    for r in outcome.results:
        score = f"{1 - r.distance:.4f}" if r.distance is not None else "?"
        print(f"\n[{r.similarity_rank}] Score: {score} | chunk {r.chunk_index}")
        print(f"    Source: {r.title or '?'}")
        print(f"    URL: {r.source_url or '?'}")
        preview = r.content[:200].replace("\n", " ")
        print(f"    Text: {preview}...")
    print()
    return 0


# ---------------------------------------------------------------------------
# MAIN
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Knowledge-base RAG pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", help="Pipeline command")

    subparsers.add_parser("ingest", help="Crawl the knowledge base and store embeddings")

    query_parser = subparsers.add_parser("query", help="Answer a question from stored articles")
    query_parser.add_argument("question", nargs="*", help="Question text")

    subparsers.add_parser("vector-status", help="Show vector store statistics")

    vq_parser = subparsers.add_parser("vector-query", help="Test query against vector store")
    vq_parser.add_argument("query", nargs="*", help="Query text")
    vq_parser.add_argument("--top-k", type=int, default=None, help="Number of results")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    commands = {
        "ingest": cmd_ingest,
        "query": cmd_query,
        "vector-status": cmd_vector_status,
        "vector-query": cmd_vector_query,
    }

    try:
        settings = Settings.from_env()
        return commands[args.command](args, settings)
    except Exception as e:
        logger.exception("Pipeline error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
