from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine

from catalog_bridge.config import Settings

# Vendor names from the config mapped to SQLAlchemy dialect+driver.
DRIVERS = {
    "mysql": "mysql+pymysql",
}


def database_url(settings: Settings) -> URL:
    return URL.create(
        DRIVERS.get(settings.db_vendor, settings.db_vendor),
        username=settings.db_user or None,
        password=settings.db_password or None,
        host=settings.db_host,
        port=settings.db_port,
        database=settings.db_name,
    )


def create_catalog_engine(settings: Settings) -> Engine:
    return create_engine(database_url(settings), pool_pre_ping=True, future=True)
