"""Create the first admin account.

    python -m scripts.seed_admin --email admin@finlook.in --mobile 9000000000 --password 'Secret123'

Values not passed on the command line are read from ADMIN_NAME, ADMIN_USERNAME,
ADMIN_EMAIL, ADMIN_MOBILE and ADMIN_PASSWORD.
"""
import argparse
import logging
import os
import sys

from dotenv import load_dotenv
from pydantic import ValidationError

load_dotenv()

from database import SessionLocal, init_db
from schemas.user import CreateAdminRequest
from services.auth import create_admin
from utils.exceptions import ConflictError

logger = logging.getLogger("seed_admin")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Create an admin user")
    parser.add_argument("--name", default=os.getenv("ADMIN_NAME", "FinLook Admin"))
    parser.add_argument("--username", default=os.getenv("ADMIN_USERNAME", "admin"))
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL"))
    parser.add_argument("--mobile", default=os.getenv("ADMIN_MOBILE"))
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD"))
    return parser.parse_args(argv)


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    args = parse_args(argv)
    try:
        data = CreateAdminRequest(
            name=args.name,
            username=args.username,
            email=args.email,
            mobile_number=args.mobile,
            password=args.password,
        )
    except ValidationError as e:
        logger.error("Invalid admin details: %s", e)
        return 1

    init_db()
    db = SessionLocal()
    try:
        result = create_admin(db, data)
    except ConflictError as e:
        logger.error("Admin not created: %s", e.message)
        return 1
    finally:
        db.close()
    logger.info("Admin created: %s", result["user"].email)
    return 0


if __name__ == "__main__":
    sys.exit(main())
