from premium_freight.models.user import User
from premium_freight.models.approver import Approver
from premium_freight.models.order import Order, OrderStatus
from premium_freight.models.approval import (
    ApprovalActionToken,
    ApprovalHistoryRecord,
    ApprovalLedgerEntry,
    HistoryAction,
)
from premium_freight.models.edit_token import EditToken, EditTokenStatus
from premium_freight.models.audit import AuditLog

__all__ = [
    "User",
    "Approver",
    "Order", "OrderStatus",
    "ApprovalLedgerEntry", "ApprovalHistoryRecord", "ApprovalActionToken", "HistoryAction",
    "EditToken", "EditTokenStatus",
    "AuditLog",
]
