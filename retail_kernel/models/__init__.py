"""ORM models for the retail kernel."""

from retail_kernel.models.billing import Billing, BillingItem
from retail_kernel.models.catalog import (
    Product,
    ProductCategory,
    ProductCategoryGroup,
    ProductVariant,
)
from retail_kernel.models.customer import Address, Customer, Person
from retail_kernel.models.quote import Quote, QuoteItem
from retail_kernel.models.shop import Shop, Stock
from retail_kernel.models.stock_item import StockItem

__all__ = [
    "Address",
    "Billing",
    "BillingItem",
    "Customer",
    "Person",
    "Product",
    "ProductCategory",
    "ProductCategoryGroup",
    "ProductVariant",
    "Quote",
    "QuoteItem",
    "Shop",
    "Stock",
    "StockItem",
]
