"""Allow honorer to be run as a module with `python -m honorer.cli`."""

from .main import main

if __name__ == "__main__":
    main()
