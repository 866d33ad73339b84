"""
Create a user (e.g. first admin). Run from project root:
  python -m calmato.scripts.create_user EMAIL NAME [--password PASSWORD] [--role USER|ADMIN]
Example:
  python -m calmato.scripts.create_user admin@calmato.io "Site Admin" --role ADMIN
Without --password a temporary password is generated and printed once.
"""
import argparse
import logging
import sys

from pydantic import ValidationError

from calmato.core.database import session_scope
from calmato.core.security import generate_temporary_password
from calmato.core.tokens import get_token_service
from calmato.models.user import UserRole
from calmato.schemas.auth import RegisterRequest
from calmato.services.auth import AuthService, EmailAlreadyRegisteredError
from calmato.services.users import UserRepository

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Calmato user from the command line.")
    parser.add_argument("email", help="Email address (stored lowercased)")
    parser.add_argument("name", help="Display name (1-100 chars)")
    parser.add_argument("--password", help="Password; generated when omitted")
    parser.add_argument(
        "--role",
        default=UserRole.USER.value,
        choices=[r.value for r in UserRole],
    )
    args = parser.parse_args(argv)

    generated = args.password is None
    password = generate_temporary_password() if generated else args.password

    try:
        body = RegisterRequest(
            email=args.email,
            name=args.name,
            password=password,
            role=UserRole(args.role),
        )
    except ValidationError as e:
        for err in e.errors():
            field = ".".join(str(p) for p in err["loc"])
            print(f"{field}: {err['msg']}", file=sys.stderr)
        return 1

    with session_scope() as db:
        service = AuthService(UserRepository(db), get_token_service())
        try:
            result = service.register(body)
        except EmailAlreadyRegisteredError:
            print(f"User '{body.email}' already exists.", file=sys.stderr)
            return 1

    print(f"Created user '{result.user.email}' (id={result.user.id}) with role '{args.role}'.")
    if generated:
        print(f"Temporary password: {password}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
