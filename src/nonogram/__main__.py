"""Allow running the generator with `python -m nonogram`."""

from nonogram import main

if __name__ == "__main__":
    main()
