"""Entry point for 'python -m contexthub' command."""

from contexthub.cli import main

if __name__ == "__main__":
    main()
