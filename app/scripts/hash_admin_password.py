from __future__ import annotations

import argparse
import getpass

from app.core.security import hash_password, verify_password


def main() -> int:
    parser = argparse.ArgumentParser(description="Print a hash suitable for ADMIN_PASSWORD_HASH")
    parser.add_argument("--password", help="read interactively when omitted")

    args = parser.parse_args()

    password = args.password or getpass.getpass("Admin password: ")
    if not password:
        parser.error("password must not be empty")

    hashed = hash_password(password)
    if not verify_password(password, hashed):
        print("Hash verification failed")
        return 1

    print(f"ADMIN_PASSWORD_HASH={hashed}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
