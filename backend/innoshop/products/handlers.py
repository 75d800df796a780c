from __future__ import annotations

from ..pipeline.mediator import Mediator
from . import requests as rq
from .product_service import ProductService


def register_handlers(mediator: Mediator, *, products: ProductService) -> None:
    mediator.register(rq.GetProductById, products.get_product_by_id)
    mediator.register(rq.GetProducts, products.get_products)
    mediator.register(rq.GetProductsByUser, products.get_products_by_user)
    mediator.register(rq.CreateProduct, products.create_product)
    mediator.register(rq.UpdateProduct, products.update_product)
    mediator.register(rq.DeleteProduct, products.delete_product)
    mediator.register(rq.ToggleProductStatus, products.toggle_product_status)
    mediator.register(rq.BulkUpdateStatus, products.bulk_update_status)
    mediator.register(rq.GetRecentProducts, products.get_recent_products)
    mediator.register(rq.GetProductsCount, products.get_products_count)
    mediator.register(rq.GetTotalProductsValue, products.get_total_products_value)
    mediator.register(rq.ToggleUserProducts, products.toggle_user_products)
    mediator.register(rq.GetUserProductsCount, products.get_user_products_count)
