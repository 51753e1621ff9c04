from clearstock.services.batch_service import evaluate_batch, list_active_batches
from clearstock.services.dashboard_service import expiry_summary, stock_view
from clearstock.services.history_service import month_history
from clearstock.services.restaurant_service import get_or_create_restaurant

__all__ = [
    "evaluate_batch",
    "expiry_summary",
    "get_or_create_restaurant",
    "list_active_batches",
    "month_history",
    "stock_view",
]
