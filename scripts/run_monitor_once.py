"""Execute a single checksum monitoring pass."""

from filesentry.app.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
