# privchat/cli.py

import argparse
import getpass
import os
import sys

from privchat.core.security import DEFAULT_ROUNDS, hash_secret


def main(argv=None) -> int:
    """Print a bcrypt hash to use as CHAT_PASSWORD"""
    parser = argparse.ArgumentParser(
        prog="privchat-hash",
        description="Generate a bcrypt hash for the CHAT_PASSWORD environment variable.",
    )
    parser.add_argument("password", nargs="?", help="password to hash (prompted when omitted)")
    parser.add_argument(
        "--rounds",
        type=int,
        default=int(os.getenv("BCRYPT_SALT_ROUNDS", DEFAULT_ROUNDS)),
        help="bcrypt cost factor (default: BCRYPT_SALT_ROUNDS or %(default)s)",
    )
    args = parser.parse_args(argv)

    password = args.password
    if password is None:
        password = getpass.getpass("Enter password to hash: ")
    if not password or not password.strip():
        print("Error: Password cannot be empty", file=sys.stderr)
        return 1

    hashed = hash_secret(password, rounds=args.rounds)
    print("\n✅ Password hash generated successfully!\n")
    print(f"Hash: {hashed}")
    print("\nAdd this to your .env file:")
    print(f"CHAT_PASSWORD={hashed}")
    print("\n⚠️  Keep this hash secure and do not share it publicly.\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
