"""Pydantic request/response schemas for the Inventory API.

These are external contracts (anti-corruption layer), separate from the
ledger's own types.
"""

from pydantic import BaseModel, Field


class SetStockLevelRequest(BaseModel):
    available: int = Field(ge=0)
    variant_key: str | None = None


class StockLevelResponse(BaseModel):
    product_id: str
    variant_key: str
    available: int
