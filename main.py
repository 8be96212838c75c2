"""Main entry point for the learnloop CLI."""

from learnloop.cli.app import app


def main():
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    main()
