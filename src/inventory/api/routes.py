"""FastAPI routes for admin stock levels."""

from fastapi import APIRouter, Depends

from inventory.api.schemas import SetStockLevelRequest, StockLevelResponse
from inventory.ledger import get_ledger
from ordering.api.dependencies import require_admin
from ordering.buyer import Buyer
from shared.errors import NotFound

inventory_router = APIRouter(prefix="/inventory", tags=["inventory"])


@inventory_router.get("/{product_id}", response_model=StockLevelResponse)
def get_stock_level(
    product_id: str,
    variant_key: str | None = None,
    admin: Buyer = Depends(require_admin),  # noqa: ARG001
) -> StockLevelResponse:
    record = get_ledger().get(product_id, variant_key)
    if record is None:
        raise NotFound("Product is not stocked", product_id=product_id, variant_key=variant_key or "")
    return StockLevelResponse(
        product_id=record.product_id,
        variant_key=record.variant_key,
        available=record.available,
    )


@inventory_router.put("/{product_id}", response_model=StockLevelResponse)
def set_stock_level(
    product_id: str,
    body: SetStockLevelRequest,
    admin: Buyer = Depends(require_admin),  # noqa: ARG001
) -> StockLevelResponse:
    record = get_ledger().set_level(product_id, body.variant_key, body.available)
    return StockLevelResponse(
        product_id=record.product_id,
        variant_key=record.variant_key,
        available=record.available,
    )
