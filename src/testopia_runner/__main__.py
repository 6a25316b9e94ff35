"""Allow running testopia-runner as a module: python -m testopia_runner."""

from testopia_runner.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
