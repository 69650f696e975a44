"""
Create an account (e.g. the blog owner on first install). Run from project root:
  python -m app.scripts.create_user SLUG NAME EMAIL PASSWORD [role]
Example:
  python -m app.scripts.create_user jane "Jane Doe" jane@example.com your-secure-password owner
"""
import argparse
import logging
import sys

from app.core.config import get_settings
from app.core.database import session_scope
from app.schemas.user import ROLE_VALUES, UserCandidate, UserRejected
from app.services import users
from app.services.users import UserPersistenceError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create an Inkwell account.")
    parser.add_argument("slug", help="URL slug (normalized: lowercase, hyphens)")
    parser.add_argument("name", help="Display name")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="Password (see PASSWORD_MIN_LENGTH)")
    parser.add_argument("role", nargs="?", default="author", choices=sorted(ROLE_VALUES))
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    args = build_parser().parse_args(argv)
    candidate = UserCandidate(
        slug=args.slug,
        name=args.name,
        email=args.email,
        password=args.password,
        role=args.role,
    )

    try:
        with session_scope() as db:
            decision = users.create(db, candidate, get_settings())
    except UserPersistenceError as e:
        logger.error("Could not create user: %s", e.message)
        return 1

    if isinstance(decision, UserRejected):
        print(f"{decision.message} ({decision.reason.value}).", file=sys.stderr)
        return 1
    print(f"Created user '{decision.record.slug}' with role '{decision.record.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
