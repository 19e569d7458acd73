from fastapi import APIRouter

from premium_freight.api.v1 import approvals, approvers, auth, edits, orders

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(approvals.router, prefix="/approvals", tags=["approvals"])
api_router.include_router(edits.router, prefix="/edits", tags=["edits"])
api_router.include_router(approvers.router, prefix="/approvers", tags=["approvers"])
