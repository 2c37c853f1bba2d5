"""Print the resolved database URL to stdout for migration tooling.

Usage:
    python -m backend.print_database_url
"""
import sys

from backend.core.errors import ConfigError
from backend.core.secrets import resolve_database_url


def main() -> None:
    try:
        database_url = resolve_database_url()
    except ConfigError as exc:
        print("Failed to resolve DATABASE_URL:", exc, file=sys.stderr)
        sys.exit(1)
    print(database_url)


if __name__ == "__main__":
    main()
