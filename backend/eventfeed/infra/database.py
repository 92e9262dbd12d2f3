from functools import lru_cache
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from eventfeed.config import get_settings
from eventfeed.infra.db.tables import metadata


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_engine(get_settings().database_url, future=True)


def init_db(engine: Optional[Engine] = None) -> Engine:
    engine = engine or get_engine()
    metadata.create_all(engine)
    return engine
