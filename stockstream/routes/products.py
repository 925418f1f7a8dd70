import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from stockstream.core.exceptions import InventoryStoreError
from stockstream.dependencies import get_purchase_service
from stockstream.schemas.product import ProductSnapshot, PurchaseRequest, PurchaseResult
from stockstream.services.purchase_service import PurchaseService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


@router.post(
    "/buy",
    response_model=PurchaseResult,
    responses={400: {"model": PurchaseResult}},
)
async def buy(
    payload: PurchaseRequest,
    service: PurchaseService = Depends(get_purchase_service),
):
    """Purchase a quantity of one product. 200 on success, 400 with the reason otherwise."""
    logger.info("POST /api/products/buy - ProductId: %s, Quantity: %s", payload.product_id, payload.quantity)
    result = await service.purchase(payload.product_id, payload.quantity)
    if result.success:
        return result
    return JSONResponse(status_code=400, content=result.model_dump(mode="json", by_alias=True))


@router.get("/{category}", response_model=List[ProductSnapshot])
async def get_products_by_category(
    category: str,
    service: PurchaseService = Depends(get_purchase_service),
):
    """List a category's products (cached)."""
    try:
        return await service.list_by_category(category)
    except InventoryStoreError as e:
        logger.error("Error fetching products for category '%s': %s", category, e)
        raise HTTPException(status_code=500, detail="Internal server error")
