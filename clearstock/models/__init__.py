import importlib

from clearstock.models.category import Category
from clearstock.models.location import Location
from clearstock.models.product_batch import ProductBatch
from clearstock.models.restaurant import Restaurant
from clearstock.models.stock_event import StockEvent


def import_all_models() -> None:
    for module_name in (
        "clearstock.models.category",
        "clearstock.models.location",
        "clearstock.models.product_batch",
        "clearstock.models.restaurant",
        "clearstock.models.stock_event",
    ):
        importlib.import_module(module_name)


__all__ = [
    "Category",
    "Location",
    "ProductBatch",
    "Restaurant",
    "StockEvent",
    "import_all_models",
]
