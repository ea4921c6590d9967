"""
Shopify Admin REST API client.
"""

import base64
import time
from typing import List, Optional

import requests

from listing_automation.constants import (
    SHOPIFY_API_VERSION,
    SHOPIFY_DEFAULT_RETRY_AFTER,
    SHOPIFY_MAX_RETRIES,
    SHOPIFY_PAGE_LIMIT,
    SHOPIFY_SAMPLE_VARIANT_LIMIT,
    SHOPIFY_SAMPLE_VARIANT_SCAN,
    SHOPIFY_TIMEOUT_SECONDS,
)
from listing_automation.models import (
    CatalogCollection,
    DriveImage,
    GeneratedListing,
    SampleVariant,
    ShopifyProduct,
    StoreCatalog,
)
from util.logging_util import setup_logger
from util.secrets import get_shopify_access_token, get_shopify_store_url

logger = setup_logger(__name__)


class ShopifyAPIError(RuntimeError):
    """Raised when a Shopify API request fails."""


class ShopifyClient:
    """Thin wrapper over the Admin REST API with rate-limit retries."""

    def __init__(self, store_url: Optional[str] = None, access_token: Optional[str] = None):
        self.store_url = store_url or get_shopify_store_url()
        self.base_url = f"https://{self.store_url}/admin/api/{SHOPIFY_API_VERSION}"
        self.headers = {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": access_token or get_shopify_access_token(),
        }

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        if not url.startswith("http"):
            url = f"{self.base_url}/{url}"

        for attempt in range(SHOPIFY_MAX_RETRIES + 1):
            try:
                response = requests.request(
                    method, url, headers=self.headers, timeout=SHOPIFY_TIMEOUT_SECONDS, **kwargs
                )
            except requests.exceptions.RequestException as e:
                raise ShopifyAPIError(f"HTTP request failed: {e}") from e

            if response.status_code == 429 and attempt < SHOPIFY_MAX_RETRIES:
                retry_after = float(response.headers.get("Retry-After", SHOPIFY_DEFAULT_RETRY_AFTER))
                logger.warning(f"Rate limited by Shopify, waiting {retry_after} seconds...")
                time.sleep(retry_after)
                continue

            if not response.ok:
                raise ShopifyAPIError(
                    f"{method} {url} failed with {response.status_code}: {response.text[:500]}"
                )
            return response

        raise ShopifyAPIError(f"{method} {url} still rate limited after {SHOPIFY_MAX_RETRIES} retries")

    def product_url(self, handle: str) -> str:
        return f"https://{self.store_url}/products/{handle}"

    def create_product(
        self,
        listing: GeneratedListing,
        product_type: str,
        vendor: str,
        images: List[DriveImage],
    ) -> ShopifyProduct:
        """Create an active product with its images and variants."""
        product_data = {
            "title": listing.title,
            "body_html": listing.description,
            "vendor": vendor,
            "product_type": product_type,
            "tags": ", ".join(listing.tags),
            "handle": listing.handle,
            "metafields_global_title_tag": listing.title,
            "metafields_global_description_tag": listing.meta_description,
            "status": "active",
            "images": [
                {"attachment": base64.b64encode(image.content).decode("ascii"), "filename": image.name}
                for image in images
            ],
            "variants": [
                {
                    "title": variant["size"],
                    "option1": variant["size"],
                    "price": str(variant["price"]),
                    "sku": variant["sku"],
                    "inventory_quantity": variant["inventory_quantity"],
                    "inventory_management": "shopify",
                    "fulfillment_service": "manual",
                }
                for variant in listing.variants
            ],
        }

        logger.info(
            f"Creating Shopify product '{listing.title}' with {len(listing.variants)} variants "
            f"and {len(images)} images"
        )
        response = self._request("POST", "products.json", json={"product": product_data})
        product = response.json()["product"]

        created = ShopifyProduct(
            product_id=str(product["id"]),
            product_url=self.product_url(product["handle"]),
            handle=product["handle"],
            variant_ids=[str(v["id"]) for v in product.get("variants", [])],
        )
        logger.info(f"Created Shopify product {created.product_id}: {created.product_url}")
        return created

    def add_product_to_collection(self, product_id: str, collection_id: str) -> bool:
        """Link a product to a collection. Failures are logged, not raised."""
        try:
            self._request(
                "POST",
                "collects.json",
                json={"collect": {"product_id": product_id, "collection_id": collection_id}},
            )
        except ShopifyAPIError as e:
            logger.warning(f"Could not add product {product_id} to collection {collection_id}: {e}")
            return False

        logger.info(f"Added product {product_id} to collection {collection_id}")
        return True

    def delete_product(self, product_id: str):
        self._request("DELETE", f"products/{product_id}.json")
        logger.info(f"Deleted Shopify product {product_id}")

    def _fetch_collections(self) -> List[CatalogCollection]:
        collections = []
        for kind in ("custom_collections", "smart_collections"):
            response = self._request("GET", f"{kind}.json", params={"limit": SHOPIFY_PAGE_LIMIT})
            for c in response.json().get(kind, []):
                collections.append(
                    CatalogCollection(
                        id=str(c["id"]),
                        title=c["title"],
                        handle=c["handle"],
                        product_count=c.get("products_count") or 0,
                    )
                )
        return collections

    def fetch_store_catalog(self, include_products: bool = True) -> StoreCatalog:
        """
        Pull collections, tags, product types, vendors and sample variants
        from the store.

        Products are paged through with the Link header until no next page
        remains.
        """
        collections = self._fetch_collections()
        logger.info(f"Fetched {len(collections)} collections")

        tags, product_types, vendors = set(), set(), set()
        sample_variants: List[SampleVariant] = []
        total_products = 0

        url = "products.json"
        params = {"limit": SHOPIFY_PAGE_LIMIT}
        while include_products and url:
            response = self._request("GET", url, params=params)
            products = response.json().get("products", [])
            total_products += len(products)

            for product in products:
                for tag in (product.get("tags") or "").split(","):
                    if tag.strip():
                        tags.add(tag.strip())
                if product.get("product_type"):
                    product_types.add(product["product_type"])
                if product.get("vendor"):
                    vendors.add(product["vendor"])
                if len(sample_variants) < SHOPIFY_SAMPLE_VARIANT_SCAN:
                    for variant in product.get("variants") or []:
                        if variant.get("title") and variant.get("price"):
                            sample_variants.append(
                                SampleVariant(
                                    product_type=product.get("product_type") or "Unknown",
                                    size=variant["title"],
                                    price=float(variant["price"]),
                                    sku_pattern=variant.get("sku") or "NO_SKU",
                                )
                            )

            # The next-page URL already carries limit and page_info
            url = response.links.get("next", {}).get("url")
            params = None
            logger.info(f"Fetched {total_products} products so far")

        catalog = StoreCatalog(
            collections=collections,
            all_tags=sorted(tags),
            product_types=sorted(product_types),
            vendors=sorted(vendors),
            sample_variants=sample_variants[:SHOPIFY_SAMPLE_VARIANT_LIMIT],
            total_products=total_products,
        )
        logger.info(
            f"Catalog fetch complete: {len(catalog.collections)} collections, {total_products} products, "
            f"{len(catalog.all_tags)} tags, {len(catalog.product_types)} product types"
        )
        return catalog
