"""Allow ``python -m apiparity``."""

from apiparity.cli import main

if __name__ == "__main__":
    main()
