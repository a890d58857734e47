from seatdesk.core.config import settings
from seatdesk.core.security import verify_password
from seatdesk.db.init_db import create_database, init_db, seed_first_admin
from seatdesk.models.admin import Admin
from seatdesk.models.seat import Seat


def test_create_database_skips_non_postgres_urls():
    assert settings.DATABASE_URL == "sqlite://"
    assert create_database() is None


def test_first_admin_is_seeded_once(db):
    assert seed_first_admin(db)
    assert not seed_first_admin(db)

    admin = db.query(Admin).one()
    assert admin.email == settings.FIRST_ADMIN_EMAIL
    assert verify_password(settings.FIRST_ADMIN_PASSWORD, admin.password_hash)


def test_init_db_seeds_default_seats(db):
    init_db(db)
    init_db(db)
    assert db.query(Seat).count() == 66 + 39
    assert db.query(Admin).count() == 1
