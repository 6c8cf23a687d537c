"""Entry point for api_stack."""

from .cli import cli


def main() -> None:
    """Entry point for the apistack CLI."""
    cli()


if __name__ == "__main__":
    main()
