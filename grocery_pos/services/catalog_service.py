# grocery_pos/services/catalog_service.py
import logging
from typing import Dict, Iterable
from ..errors import InvalidReference
from ..models.item import CatalogItem

class CatalogService:
    """Read-only view of the inventory catalog used when pricing orders"""

    def __init__(self, db):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def resolve(self, session, item_ids: Iterable[int]) -> Dict[int, CatalogItem]:
        """Map every id to its current name and cost, or fail with InvalidReference"""
        wanted = set(item_ids)
        rows = await session.fetch_items(wanted)
        found = {row['item_id']: CatalogItem.model_validate(row) for row in rows}

        missing = wanted - found.keys()
        if missing:
            self.logger.warning(f"Unknown item ids requested: {sorted(missing)}")
            raise InvalidReference(missing)

        return found
