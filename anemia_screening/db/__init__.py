from .database import (
    DatabaseUnavailableError,
    get_database,
    connect_to_mongo,
    close_mongo_connection,
    ping_database
)

__all__ = [
    "DatabaseUnavailableError",
    "get_database",
    "connect_to_mongo",
    "close_mongo_connection",
    "ping_database"
]
