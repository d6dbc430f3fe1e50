from .catalog import Category, Product
from .sales import Transaction, TransactionDetail

__all__ = [
    'Category', 'Product',
    'Transaction', 'TransactionDetail',
]
