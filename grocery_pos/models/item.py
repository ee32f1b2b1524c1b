# grocery_pos/models/item.py
from decimal import Decimal
from pydantic import BaseModel, ConfigDict

class CatalogItem(BaseModel):
    """Catalog entry as seen by billing: current name, unit cost and stock"""
    item_id: int
    name: str
    cost: Decimal = Decimal(0)
    quantity: Decimal = Decimal(0)

    model_config = ConfigDict(from_attributes=True)
