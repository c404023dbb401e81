from .blacklist import BlacklistRepository
from .items import ItemRepository
from .sync_runs import SyncRunRepository
from .user_mappings import UserMappingRepository

__all__ = [
    "BlacklistRepository",
    "ItemRepository",
    "SyncRunRepository",
    "UserMappingRepository",
]
