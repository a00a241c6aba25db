"""Entry point for ``python -m remote_views``."""
from .cli import app

if __name__ == "__main__":
    app()
