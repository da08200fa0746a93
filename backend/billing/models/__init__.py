from .catalog import Category, Product
from .customers import Customer
from .invoices import Invoice, InvoiceItem
from .settings import Setting

__all__ = [
    'Category', 'Product',
    'Customer',
    'Invoice', 'InvoiceItem',
    'Setting',
]
