import logging

import uvicorn

from .config import get_settings
from .db import make_engine
from .main import create_app
from .storage import SqlStore

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # DB setup, bricht beim Start ab wenn die DB nicht erreichbar ist
    store = SqlStore(make_engine(settings.database_url, pool_size=settings.db_pool_size))
    store.ping()

    app = create_app(store, settings)
    logger.info("JSON API server running on %s:%s", settings.listen_host, settings.listen_port)
    uvicorn.run(app, host=settings.listen_host, port=settings.listen_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
