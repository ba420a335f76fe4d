"""Ingestion pipeline: crawl → extract → chunk → embed → store.

Usage (standalone):
  python -m vectorstore.ingest

Or via the main pipeline:
  python pipeline.py ingest

Processing is strictly sequential: languages → sections → articles →
chunks. An article that cannot be fetched or extracted counts as zero
chunks and the crawl moves on; a chunk whose embedding or insert fails is
skipped without affecting its siblings.
"""

import logging
import sys
import time
from typing import Optional

from schemas.article import Article
from schemas.chunk import Chunk
from scrapers.docs_scraper import DocsScraper
from vectorstore.chunker import Chunker
from vectorstore.embedder import Embedder, EmbeddingError
from vectorstore.store import VectorStore

logger = logging.getLogger(__name__)


def _empty_stats() -> dict:
    return {
        "articles_found": 0,
        "articles_processed": 0,
        "articles_failed": 0,
        "chunks_attempted": 0,
        "chunks_stored": 0,
        "embedding_failures": 0,
        "store_failures": 0,
    }


class IngestPipeline:
    """Coordinates the crawler, chunker, embedder and store."""

    def __init__(
        self,
        scraper: DocsScraper,
        chunker: Chunker,
        embedder: Embedder,
        store: VectorStore,
    ):
        self.scraper = scraper
        self.chunker = chunker
        self.embedder = embedder
        self.store = store

    # ------------------------------------------------------------------
    # Chunk level
    # ------------------------------------------------------------------

    def store_article(self, article: Article) -> dict:
        """Chunk, embed and store one article.

        Returns a stats dict: {chunks_attempted, chunks_stored,
        embedding_failures, store_failures}.
        """
        texts = self.chunker.split(article.content)
        total = len(texts)
        logger.info("Split article into %d chunks", total)

        stats = {"chunks_attempted": 0, "chunks_stored": 0, "embedding_failures": 0, "store_failures": 0}
        for i, text in enumerate(texts):
            stats["chunks_attempted"] += 1
            content = f"{article.title} {text}" if article.title else text
            logger.info("Processing chunk %d/%d", i + 1, total)

            try:
                embedding = self.embedder.embed(content)
            except EmbeddingError as e:
                stats["embedding_failures"] += 1
                logger.error("Skipping chunk %d/%d of %s: %s", i + 1, total, article.url, e)
                continue

            chunk = Chunk(
                content=content,
                source_url=article.url,
                title=article.title,
                chunk_index=i,
                total_chunks=total,
                embedding=embedding,
            )
            result = self.store.insert(chunk)
            if result.ok:
                stats["chunks_stored"] += 1
            else:
                stats["store_failures"] += 1

        logger.info("Successfully stored %d/%d chunks for this article", stats["chunks_stored"], total)
        return stats

    # ------------------------------------------------------------------
    # Article level
    # ------------------------------------------------------------------

    def process_article(self, article_url: str, index: int, total: int) -> Optional[dict]:
        """Fetch, extract and store one article. Returns None if it was skipped."""
        logger.info("Processing article %d/%d", index + 1, total)
        logger.info("URL: %s", article_url)

        article = self.scraper.get_article(article_url)
        if article is None or not article.content:
            logger.warning("Failed to get article content: %s", article_url)
            return None
        return self.store_article(article)

    def ingest_urls(self, article_urls: list[str]) -> dict:
        """Ingest a list of article URLs, isolating failures per article."""
        stats = _empty_stats()
        stats["articles_found"] = len(article_urls)

        for i, url in enumerate(article_urls):
            try:
                article_stats = self.process_article(url, i, len(article_urls))
            except Exception as e:
                logger.exception("Unexpected error processing %s: %s", url, e)
                article_stats = None

            if article_stats is None:
                stats["articles_failed"] += 1
                continue
            stats["articles_processed"] += 1
            for key, value in article_stats.items():
                stats[key] += value
        return stats

    # ------------------------------------------------------------------
    # Language level
    # ------------------------------------------------------------------

    def ingest_language(self, language: str) -> dict:
        """Crawl every article of one language and store its chunks."""
        t0 = time.perf_counter()
        logger.info("=== Processing language: %s ===", language)

        article_urls = self.scraper.discover_articles(language)
        logger.info("Total articles found: %d", len(article_urls))

        stats = self.ingest_urls(article_urls)
        stats["elapsed_s"] = round(time.perf_counter() - t0, 1)
        logger.info("[%s] Ingestion complete in %.1fs: %s", language, stats["elapsed_s"], stats)
        return stats

    def run(self, languages: list[str]) -> dict[str, dict]:
        """Run the full ingestion for each language in turn.

        Returns:
            Dict mapping language → stats dict.
        """
        all_stats: dict[str, dict] = {}
        overall_start = time.perf_counter()

        for language in languages:
            all_stats[language] = self.ingest_language(language)

        logger.info("All languages completed in %.1fs", time.perf_counter() - overall_start)
        return all_stats


def print_summary(all_stats: dict[str, dict]):
    """Print a summary of the ingestion results."""
    print("\n" + "=" * 70)
    print("INGESTION SUMMARY")
    print("=" * 70)

    total_articles = 0
    total_attempted = 0
    total_stored = 0

    for language, stats in all_stats.items():
        print(f"\n  {language}:")
        print(f"    Articles found:      {stats['articles_found']}")
        print(f"    Articles processed:  {stats['articles_processed']}")
        print(f"    Articles skipped:    {stats['articles_failed']}")
        print(f"    Chunks attempted:    {stats['chunks_attempted']}")
        print(f"    Chunks stored:       {stats['chunks_stored']}")
        if stats.get("elapsed_s") is not None:
            print(f"    Elapsed:             {stats['elapsed_s']}s")
        total_articles += stats["articles_processed"]
        total_attempted += stats["chunks_attempted"]
        total_stored += stats["chunks_stored"]

    print(f"\n  TOTAL:")
    print(f"    Articles:  {total_articles}")
    print(f"    Attempted: {total_attempted}")
    print(f"    Stored:    {total_stored}")
    print("=" * 70)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main():
    from pipeline import main as pipeline_main

    sys.exit(pipeline_main(["ingest"]))


if __name__ == "__main__":
    main()
