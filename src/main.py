"""Entry point for ``python -m src.main``."""
from .cli import main

if __name__ == "__main__":
    main()
