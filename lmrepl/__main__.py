"""Entry point for `python -m lmrepl`; the console script calls the same main()."""

from .main import main

if __name__ == "__main__":
    raise SystemExit(main())
