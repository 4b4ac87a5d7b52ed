from .category import Category
from .item import Item
from .match import PotentialMatch
from .claim import ClaimRequest
from .user import User
from .notification import Notification
from .app_setting import AppSetting

__all__ = ["Category", "Item", "PotentialMatch", "ClaimRequest", "User", "Notification", "AppSetting"]
