from fieldops.models.setting import SystemSetting
from fieldops.models.user import User

__all__ = [
    # Configuration
    "SystemSetting",
    # Users
    "User",
]
