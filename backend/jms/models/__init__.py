from .counters import Counter
from .inventory import Product
from .sales import Sale, SaleItem
from .debts import Debt, DebtPayment
from .gahan import Gahan

__all__ = [
    'Counter',
    'Product',
    'Sale', 'SaleItem',
    'Debt', 'DebtPayment',
    'Gahan',
]
