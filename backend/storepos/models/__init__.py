from .auth import User, USER_ROLES
from .catalog import Category, Product
from .inventory import StockMovement, MOVEMENT_TYPES
from .sales import Sale, SaleItem, PAYMENT_METHODS

__all__ = [
    'User', 'USER_ROLES',
    'Category', 'Product',
    'StockMovement', 'MOVEMENT_TYPES',
    'Sale', 'SaleItem', 'PAYMENT_METHODS',
]
