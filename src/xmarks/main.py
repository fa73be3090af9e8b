"""Application entry point for the xmarks backend server."""

from xmarks.app import App
from xmarks.config import Config
from xmarks.logging import setup_logging
from xmarks.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
