import psycopg2
from psycopg2 import sql
from psycopg2.extensions import ISOLATION_LEVEL_AUTOCOMMIT
from sqlalchemy.orm import Session
from seatdesk.core.config import settings
from seatdesk.core.security import get_password_hash
from seatdesk.models.admin import Admin
from seatdesk.services.registry import ensure_all_default_seats
import logging

logger = logging.getLogger(__name__)

def create_database():
    """Create the Postgres database if it doesn't exist."""
    if not settings.DATABASE_URL.startswith("postgresql"):
        return
    try:
        # Connect to default 'postgres' database to check/create target DB
        con = psycopg2.connect(
            user=settings.POSTGRES_USER,
            password=settings.POSTGRES_PASSWORD,
            host=settings.POSTGRES_SERVER,
            port=settings.POSTGRES_PORT,
            dbname="postgres"
        )
        con.set_isolation_level(ISOLATION_LEVEL_AUTOCOMMIT)
        cur = con.cursor()

        cur.execute("SELECT 1 FROM pg_catalog.pg_database WHERE datname = %s", (settings.POSTGRES_DB,))
        if not cur.fetchone():
            logger.info("Database %s does not exist. Creating...", settings.POSTGRES_DB)
            cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(settings.POSTGRES_DB)))
            logger.info("Database %s created successfully.", settings.POSTGRES_DB)
        else:
            logger.info("Database %s already exists.", settings.POSTGRES_DB)

        cur.close()
        con.close()
    except psycopg2.Error as e:
        logger.error("Error creating database: %s", e)
        # Proceeding anyway, maybe it exists or connection params are for the target DB directly


def seed_first_admin(db: Session) -> bool:
    """Create the configured admin when no admin exists yet."""
    if db.query(Admin).first():
        return False
    db.add(Admin(
        username=settings.FIRST_ADMIN_USERNAME,
        email=settings.FIRST_ADMIN_EMAIL,
        password_hash=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
    ))
    db.commit()
    logger.info("Created first admin %s", settings.FIRST_ADMIN_EMAIL)
    return True


def init_db(db: Session) -> None:
    seed_first_admin(db)
    if settings.SEED_DEFAULT_SEATS:
        created = ensure_all_default_seats(db)
        logger.info("Default seats created per section: %s", created)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_database()
