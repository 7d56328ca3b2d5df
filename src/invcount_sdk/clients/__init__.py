from .counts_client import CountsClient
from .lots_client import LotsClient
from .products_client import ProductsClient

__all__ = [
    "CountsClient",
    "LotsClient",
    "ProductsClient",
]
