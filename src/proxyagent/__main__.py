"""Entry point for running proxyagent directly."""

from .cli import app


def main():
    """Run the proxyagent CLI."""
    app(prog_name="proxyagent")


if __name__ == "__main__":
    main()
