"""Entry point for running narrate as a module."""

from .cli import app


def main() -> None:
    """Main entry point for the narrate CLI application."""
    app()


if __name__ == "__main__":
    main()
