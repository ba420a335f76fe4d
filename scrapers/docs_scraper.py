"""Knowledge-base crawler.

Walks a documentation site laid out as a per-language index page linking
section pages, which in turn list article pages. Extracts the article
container of each page into an ``Article``. Any page that cannot be
fetched or does not carry the expected markup is logged and skipped.
"""

import logging
from typing import Optional

from bs4 import BeautifulSoup
from pydantic import BaseModel

from processors.content_extractor import ContentExtractor, normalize_whitespace
from schemas.article import Article
from scrapers.utils import RateLimiter, fetch_url, select_links

logger = logging.getLogger(__name__)


class SiteSelectors(BaseModel):
    """CSS selectors locating the parts of the knowledge-base markup."""
    index: str = ".kb-index a"
    article_links: str = ".kb-categories__item ul li a"
    article: str = ".kb-article.tinymce-content"
    title: str = "h1 span"


def extract_article(html: str, url: str, selectors: Optional[SiteSelectors] = None) -> Optional[Article]:
    """Extract title and plain text from an article page.

    Returns None when the article container is missing (not an article
    page, or the markup changed). A page with a container but no title
    yields an empty title.
    """
    selectors = selectors or SiteSelectors()
    soup = BeautifulSoup(html, "lxml")

    container = soup.select_one(selectors.article)
    if container is None:
        logger.warning("Article content container not found: %s", url)
        return None

    title_tag = soup.select_one(selectors.title)
    title = normalize_whitespace(title_tag.get_text(" ")) if title_tag else ""

    content = ContentExtractor().clean(container)
    return Article(url=url, title=title, content=content)


class DocsScraper:
    """Crawls the language → section → article hierarchy of a knowledge base."""

    def __init__(
        self,
        base_url: str,
        selectors: Optional[SiteSelectors] = None,
        timeout: int = 30,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.selectors = selectors or SiteSelectors()
        self.timeout = timeout
        self.rate_limiter = rate_limiter or RateLimiter()

    def _fetch(self, url: str) -> Optional[str]:
        return fetch_url(url, timeout=self.timeout, rate_limiter=self.rate_limiter)

    def get_section_links(self, language: str) -> list[str]:
        """Section URLs linked from the language's index page."""
        index_url = f"{self.base_url}/{language}"
        html = self._fetch(index_url)
        if not html:
            return []
        return select_links(html, self.selectors.index, index_url)

    def get_article_links(self, section_url: str) -> list[str]:
        """Article URLs listed on a section page."""
        html = self._fetch(section_url)
        if not html:
            return []
        return select_links(html, self.selectors.article_links, section_url)

    def get_article(self, article_url: str) -> Optional[Article]:
        html = self._fetch(article_url)
        if not html:
            return None
        return extract_article(html, article_url, self.selectors)

    def discover_articles(self, language: str) -> list[str]:
        """All article URLs for a language, in crawl order, without duplicates."""
        section_links = self.get_section_links(language)
        logger.info("Found %d sections for %s", len(section_links), language)

        articles: list[str] = []
        seen: set[str] = set()
        for section_url in section_links:
            logger.info("Processing section: %s", section_url)
            links = self.get_article_links(section_url)
            logger.info("Found %d articles in this section", len(links))
            for link in links:
                if link not in seen:
                    seen.add(link)
                    articles.append(link)
        return articles
