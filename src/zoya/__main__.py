"""Entry point for running the assistant as a module.

Usage:
    python -m zoya serve
    python -m zoya --help
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env before any other imports that need env vars

from zoya.cli import main  # noqa: E402

if __name__ == "__main__":
    main()
