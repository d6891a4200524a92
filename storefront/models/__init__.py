from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.order import Order, OrderStatus
from storefront.models.activity_log import ActivityLog

__all__ = ["Category", "Product", "Order", "OrderStatus", "ActivityLog"]
