"""
Service for looking up products on the external marketplace.

Results come from scraping third-party HTML, so every failure degrades to
an empty list.
"""
import logging
from typing import List, Optional

import httpx
from bs4 import BeautifulSoup

from config import MARKETPLACE_CONFIG
from models.chat import ExternalProduct

logger = logging.getLogger(__name__)

PRODUCT_CARD_SELECTOR = "article.prd"

class MarketplaceService:
    """Best-effort product lookup on the external marketplace."""

    def __init__(self, base_url: Optional[str] = None,
                 client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the marketplace service.

        Args:
            base_url: Marketplace root URL
            client: Optional HTTP client; a short-lived one is created per lookup otherwise
        """
        self.base_url = (base_url or MARKETPLACE_CONFIG["base_url"]).rstrip("/")
        self.max_results = MARKETPLACE_CONFIG["max_results"]
        self._client = client

    async def lookup(self, query: str, page: int = 1) -> List[ExternalProduct]:
        """
        Search the marketplace catalog.

        Args:
            query: Search query
            page: Result page number

        Returns:
            Up to max_results products; empty on any network or parse error
        """
        url = f"{self.base_url}/catalog/"
        params = {"q": query, "page": page}
        headers = {"User-Agent": MARKETPLACE_CONFIG["user_agent"]}

        try:
            if self._client is None:
                async with httpx.AsyncClient(timeout=MARKETPLACE_CONFIG["timeout"],
                                             follow_redirects=True) as client:
                    response = await client.get(url, params=params, headers=headers)
            else:
                response = await self._client.get(url, params=params, headers=headers)

            response.raise_for_status()
            products = self.parse_products(response.text)
            logger.info(f"Found {len(products)} marketplace products for query: '{query}'")
            return products

        except httpx.HTTPError as e:
            logger.warning(f"Marketplace lookup failed for '{query}': {str(e)}")
            return []
        except Exception as e:
            logger.error(f"Marketplace parsing failed for '{query}': {str(e)}")
            return []

    def parse_products(self, html: str) -> List[ExternalProduct]:
        """
        Parse product cards out of a marketplace catalog page.

        Cards missing a name or link are skipped.
        """
        soup = BeautifulSoup(html, "html.parser")
        products = []

        for card in soup.select(PRODUCT_CARD_SELECTOR)[:self.max_results]:
            name_tag = card.select_one("h3.name")
            link_tag = card.select_one("a.core")
            if not name_tag or not link_tag or not link_tag.get("href"):
                continue

            price_tag = card.select_one("div.prc")
            rating_tag = card.select_one("div.rev")
            image_tag = card.select_one("img")

            products.append(ExternalProduct(
                name=name_tag.get_text(strip=True),
                price=price_tag.get_text(strip=True) if price_tag else "",
                rating=(rating_tag.get_text(strip=True) if rating_tag else "") or "No rating",
                link=self._absolute_link(link_tag["href"]),
                image=(image_tag.get("data-src") or image_tag.get("src")) if image_tag else None
            ))

        return products

    def _absolute_link(self, href: str) -> str:
        if href.startswith("http"):
            return href
        return f"{self.base_url}/{href.lstrip('/')}"
