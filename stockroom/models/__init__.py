"""ORM models. Importing this package registers every table with ``Base.metadata``."""

from .user import User
from .category import ItemCategory
from .location import Location
from .item import Item
from .movement import Movement
from .loan import Loan
from .notification import Notification

__all__ = ["User", "ItemCategory", "Location", "Item", "Movement", "Loan", "Notification"]
