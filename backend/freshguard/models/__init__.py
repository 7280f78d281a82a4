from .auth import User, SessionToken
from .tenancy import Brand, Store
from .catalog import Product
from .binding import BindingCode
from .labels import Batch, Reminder, HandlingLog

__all__ = [
    'User', 'SessionToken',
    'Brand', 'Store',
    'Product',
    'BindingCode',
    'Batch', 'Reminder', 'HandlingLog',
]
