from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from premium_freight.core.actor import ActorContext
from premium_freight.core.deps import get_actor
from premium_freight.db.session import get_db
from premium_freight.schemas.orders import OrderCreate, OrderListResponse, OrderOut
from premium_freight.services import notifications
from premium_freight.services import order_queries
from premium_freight.services import orders as order_svc

router = APIRouter()


@router.post("", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def create_order(
    body: OrderCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    """Create an order and notify the level-1 approver."""
    order = order_svc.create_order(db, actor, **body.model_dump())
    notifications.notify_next_approver(db, order.id)
    return order


@router.get("/by-approval-level", response_model=OrderListResponse)
def orders_by_approval_level(
    approval_level: int = Query(...),
    plant: str | None = Query(default=None),
    search: str | None = Query(default=None),
    page: int = Query(default=1),
    limit: int = Query(default=20),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    """Orders awaiting exactly ``approval_level``; plant-scoped users only see their plant."""
    flt = order_queries.OrderFilter(
        approval_level=approval_level,
        plant=actor.plant or plant,
        search=search,
        page=page,
        limit=limit,
    )
    result = order_queries.orders_awaiting_level(db, flt)
    return {
        "status": "success",
        "data": result.items,
        "pagination": {
            "total": result.total,
            "page": result.page,
            "limit": result.limit,
            "totalPages": result.total_pages,
        },
        "filter": flt.as_dict(),
    }


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    return order_svc.get_order(db, order_id, actor)
