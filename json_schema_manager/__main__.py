"""Module entrypoint for `python -m json_schema_manager`.

Delegates to the CLI implementation.
"""

from .cli import main


if __name__ == "__main__":
    main()
