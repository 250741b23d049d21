"""Application entry point for PocketNotes server."""

from pocketnotes.app import App
from pocketnotes.config import Config
from pocketnotes.logging import setup_logging
from pocketnotes.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
