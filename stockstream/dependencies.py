from fastapi import Request

from stockstream.services.purchase_service import PurchaseService


def get_purchase_service(request: Request) -> PurchaseService:
    """The per-process PurchaseService built in the application lifespan."""
    return request.app.state.purchase_service
