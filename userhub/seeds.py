from __future__ import annotations

import argparse
import logging

from faker import Faker

from . import crud, models
from .database import Base, engine, session_scope

logger = logging.getLogger(__name__)

fake = Faker()
Faker.seed(1234)

SAMPLE_PASSWORD = "password"


def _add_user(session, name: str, email: str, admin: bool = False) -> bool:
    if crud.find_by_email(session, email):
        return False
    user = models.User(
        name=name,
        email=email,
        password=SAMPLE_PASSWORD,
        password_confirmation=SAMPLE_PASSWORD,
        admin=admin,
    )
    errors = crud.save_user(session, user)
    if errors:
        logger.warning(
            "Skipped sample user %s: %s", email, "; ".join(error.msg for error in errors)
        )
        return False
    return True


def populate(users_count: int) -> int:
    """Seed an admin plus ``users_count`` sample users.

    Users are identified by email (exampleN@userhub.local), so running this
    twice does not create duplicates. Returns the number of users created.
    """
    Base.metadata.create_all(bind=engine)
    created = 0
    with session_scope() as session:
        if _add_user(session, "Example User", "example@userhub.local", admin=True):
            created += 1
        for n in range(1, users_count + 1):
            # Faker names occasionally exceed the column limit
            name = fake.name()[:50]
            if _add_user(session, name, f"example{n}@userhub.local"):
                created += 1
    return created


def main() -> None:
    parser = argparse.ArgumentParser(description="Populate the database with sample users.")
    parser.add_argument("--users", type=int, default=99, help="number of sample users")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    created = populate(args.users)
    logger.info("Created %d users", created)


if __name__ == "__main__":
    main()
