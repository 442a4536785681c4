from .repositories import DBPlayerRepository
from .session import DatabaseStore, build_engine, database_url
