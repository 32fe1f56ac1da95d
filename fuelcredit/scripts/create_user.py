"""
Create an account from the command line. Run from project root:
  python -m fuelcredit.scripts.create_user EMAIL PASSWORD FIRST_NAME LAST_NAME
Example:
  python -m fuelcredit.scripts.create_user alice@example.com secret1 Alice Smith
"""
import argparse
import sys

from fuelcredit.core.config import get_settings
from fuelcredit.core.database import SessionLocal
from fuelcredit.core.security import TokenIssuer
from fuelcredit.services import auth as auth_service
from fuelcredit.services.errors import AuthServiceError


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Create a Fuel Credit account with a default fuel account."
    )
    parser.add_argument("email", help="Email address (stored lowercased)")
    parser.add_argument("password", help="Password (6-128 chars)")
    parser.add_argument("first_name", help="First name")
    parser.add_argument("last_name", help="Last name")
    args = parser.parse_args(argv)

    settings = get_settings()
    db = SessionLocal()
    try:
        issuer = TokenIssuer.from_settings(settings)
        result = auth_service.register(
            db,
            issuer,
            email=args.email,
            password=args.password,
            first_name=args.first_name,
            last_name=args.last_name,
            bcrypt_rounds=settings.BCRYPT_ROUNDS,
        )
    except AuthServiceError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{result.user.email}' with id {result.user.id}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
