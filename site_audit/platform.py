"""
Storefront platform helpers.

Detects the hosted store behind a page and, given read-only credentials,
lists product images missing alt text so the SEO image-alt check can point
at the exact products to fix. Nothing here writes to the platform.
"""

import logging
import re
from typing import List, Optional

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .markup import Document
from .models import Check, DetailCard, DetailCardItem

logger = logging.getLogger(__name__)

ADMIN_API_VERSION = "2024-01"

_SHOP_VARIABLE_RE = re.compile(r"""Shopify\.shop\s*=\s*["']([^"']+\.myshopify\.com)["']""")
_STORE_DOMAIN_RE = re.compile(r"([a-z0-9-]+\.myshopify\.com)", re.IGNORECASE)
_PLATFORM_MARKERS = (
    'meta[name="shopify-checkout-api-token"]',
    'link[href*="cdn.shopify.com"]',
    'script[src*="cdn.shopify.com"]',
)


class PlatformCredentials(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    store: str
    access_token: str


def detect_store(doc: Document) -> Optional[str]:
    """
    Store domain of a hosted storefront page.

    Returns "detected" when platform assets are referenced but no store
    domain appears anywhere, None for non-storefront pages.
    """
    match = _SHOP_VARIABLE_RE.search(doc.raw)
    if match:
        return match.group(1)
    if not any(doc.count(css) for css in _PLATFORM_MARKERS):
        return None
    match = _STORE_DOMAIN_RE.search(doc.raw)
    return match.group(1) if match else "detected"


async def missing_alt_cards(
    client: httpx.AsyncClient, credentials: PlatformCredentials, timeout: float
) -> List[DetailCard]:
    """One card per product with images lacking alt text. Empty on any failure."""
    url = (
        f"https://{credentials.store}/admin/api/{ADMIN_API_VERSION}/products.json"
        "?fields=id,title,handle,images"
    )
    try:
        response = await client.get(
            url,
            headers={"X-Shopify-Access-Token": credentials.access_token},
            timeout=timeout,
        )
        response.raise_for_status()
        products = response.json().get("products", [])
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Product lookup failed for {credentials.store}: {e}")
        return []

    cards: List[DetailCard] = []
    for product in products:
        items = [
            DetailCardItem(
                element=f"Image {image.get('id')}",
                text=image.get("src", ""),
                fix=f"Products > {product.get('title', '')} > image > alternative text",
            )
            for image in product.get("images") or []
            if not (image.get("alt") or "").strip()
        ]
        if items:
            cards.append(DetailCard(
                title=product.get("title", ""),
                path=f"/products/{product.get('handle', '')}",
                items=items,
            ))
    return cards


def with_cards(check: Check, cards: List[DetailCard]) -> Check:
    if not cards:
        return check
    return check.model_copy(update={"detail_cards": cards})
