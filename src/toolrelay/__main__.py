"""toolrelay CLI entry point."""

from toolrelay.cli import app

if __name__ == "__main__":
    app()
