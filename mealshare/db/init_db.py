import psycopg2
from psycopg2 import sql
from psycopg2.extensions import ISOLATION_LEVEL_AUTOCOMMIT
from sqlalchemy.engine import make_url
from mealshare.core.config import settings
import logging

logger = logging.getLogger(__name__)


def create_database(database_url: str = None):
    """Create the PostgreSQL database if it doesn't exist. No-op for other backends."""
    url = make_url(database_url or settings.DATABASE_URL)
    if not url.get_backend_name().startswith("postgresql"):
        logger.info("Skipping database creation for backend %s.", url.get_backend_name())
        return

    try:
        # Connect to default 'postgres' database to check/create target DB
        con = psycopg2.connect(
            user=url.username,
            password=url.password,
            host=url.host,
            port=url.port or 5432,
            dbname="postgres"
        )
        con.set_isolation_level(ISOLATION_LEVEL_AUTOCOMMIT)
        cur = con.cursor()

        cur.execute("SELECT 1 FROM pg_catalog.pg_database WHERE datname = %s", (url.database,))
        exists = cur.fetchone()

        if not exists:
            logger.info("Database %s does not exist. Creating...", url.database)
            cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(url.database)))
            logger.info("Database %s created successfully.", url.database)
        else:
            logger.info("Database %s already exists.", url.database)

        cur.close()
        con.close()
    except psycopg2.Error as e:
        # Connection params may point straight at an existing target DB
        logger.error("Error creating database: %s", e)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_database()
