from socialsync.storage.base import SocialStorage
from socialsync.storage.memory import MemoryStorage
from socialsync.storage.sql import SQLStorage, open_sql_storage

__all__ = [
    "MemoryStorage",
    "SQLStorage",
    "SocialStorage",
    "open_sql_storage",
]
