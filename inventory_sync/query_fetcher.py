"""Inventory ingestion through the paginated warehouse_products query.

Each product carries its bin locations; these are flattened into one row per
(sku, bin) and written to the query cache table.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from .config import Settings
from .credentials import CredentialStore
from .exceptions import UpstreamError
from .fetchers import InventoryFetcher
from .inventory_store import InventoryCacheStore, InventoryRow
from .shiphero_client import ShipHeroClient

logger = logging.getLogger(__name__)


@dataclass
class Page:
    products: list[dict] = field(default_factory=list)
    has_next_page: bool = False
    end_cursor: str | None = None


def build_query(
    warehouse_id: str,
    cursor: str | None,
    page_size: int = 100,
    locations_page_size: int = 50,
) -> str:
    """Build the warehouse_products query for one page."""
    after_clause = f', after: "{cursor}"' if cursor else ""

    return f"""
    query {{
      warehouse_products(warehouse_id: "{warehouse_id}") {{
        request_id
        complexity
        data(first: {page_size}{after_clause}) {{
          edges {{
            node {{
              product {{
                sku
              }}
              locations(first: {locations_page_size}) {{
                edges {{
                  node {{
                    location {{
                      name
                    }}
                    quantity
                  }}
                }}
              }}
            }}
          }}
          pageInfo {{
            hasNextPage
            endCursor
          }}
        }}
      }}
    }}
    """


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def transform_products(products: list[dict], max_locations: int = 50) -> list[InventoryRow]:
    """Flatten products into (sku, bin, quantity) rows.

    Products without a sku, locations without a name, and non-numeric
    quantities are skipped. At most max_locations entries per product are used.
    """
    rows = []

    for product in products:
        if not isinstance(product, dict):
            continue
        sku = (product.get("product") or {}).get("sku")
        if not sku:
            continue

        edges = (product.get("locations") or {}).get("edges") or []
        for edge in edges[:max_locations]:
            node = (edge or {}).get("node") or {}
            location_name = (node.get("location") or {}).get("name")
            quantity = node.get("quantity")

            if location_name and _is_number(quantity):
                rows.append(InventoryRow(sku=sku, bin=location_name, quantity=int(quantity)))

    return rows


class QueryInventoryFetcher(InventoryFetcher):
    name = "query"

    def __init__(
        self,
        credential_store: CredentialStore,
        client: ShipHeroClient,
        store: InventoryCacheStore,
        settings: Settings,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(credential_store, store)
        self.client = client
        self.settings = settings
        self.sleep = sleep

    def fetch_page(self, warehouse_id: str, cursor: str | None) -> Page:
        query = build_query(
            warehouse_id,
            cursor,
            page_size=self.settings.query_page_size,
            locations_page_size=self.settings.query_locations_page_size,
        )
        body = self.client.execute(query)

        data = ((body.get("data") or {}).get("warehouse_products") or {}).get("data")
        if not isinstance(data, dict):
            raise UpstreamError("Invalid response structure from warehouse_products query")

        products = [edge.get("node") for edge in data.get("edges") or [] if isinstance(edge, dict)]
        page_info = data.get("pageInfo") or {}

        return Page(
            products=[p for p in products if p is not None],
            has_next_page=bool(page_info.get("hasNextPage")),
            end_cursor=page_info.get("endCursor"),
        )

    def collect(self, warehouse_id: str) -> list[InventoryRow]:
        max_pages = self.settings.query_max_pages
        all_rows: list[InventoryRow] = []
        cursor = None
        page_count = 0
        has_next_page = True

        while has_next_page and page_count < max_pages:
            page_count += 1
            logger.info(f"Fetching page {page_count}...")

            page = self.fetch_page(warehouse_id, cursor)
            page_rows = transform_products(
                page.products, self.settings.query_locations_page_size
            )
            all_rows.extend(page_rows)

            logger.info(
                f"Page {page_count}: {len(page.products)} products, "
                f"{len(page_rows)} location records. Total: {len(all_rows)}"
            )

            has_next_page = page.has_next_page
            cursor = page.end_cursor

            if has_next_page and page_count < max_pages:
                self.sleep(self.settings.query_page_delay_seconds)

        if has_next_page:
            logger.warning(f"Reached max page limit ({max_pages}), stopping pagination")

        return all_rows
