"""Entry point for ``python -m propsync``."""

from .cli import main

if __name__ == "__main__":
    main()
