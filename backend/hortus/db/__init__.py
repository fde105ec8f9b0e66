from .core import DbTarget, connect, create_pool, cursor, open_connection, parse_db_url
from .deps import get_store
from .mysql import MySQLPlantStore
from .port import PlantNames, PlantStore

__all__ = [
    "DbTarget",
    "parse_db_url",
    "open_connection",
    "create_pool",
    "connect",
    "cursor",
    "get_store",
    "PlantNames",
    "PlantStore",
    "MySQLPlantStore",
]
