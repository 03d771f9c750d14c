from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


class Base(DeclarativeBase):
    pass


def create_db_engine(database_url: str) -> Engine:
    """建立資料庫引擎

    In-memory SQLite 必須共用同一條連線，否則每個 thread 會看到各自的空資料庫。
    """
    if database_url in IN_MEMORY_URLS:
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url)


def init_db(engine: Engine) -> None:
    # Import models so they register on Base.metadata
    import localdeals.models  # noqa: F401

    Base.metadata.create_all(engine)
