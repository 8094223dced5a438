import logging

import uvicorn

from config import load_settings, setup_logging

logger = logging.getLogger(__name__)


def main():
    """
    Run the Wikimem HTTP process: desktop API, change events and the
    streamable-HTTP MCP endpoint, all sharing one store and one notifier.
    """
    settings = load_settings()
    setup_logging(settings.log_level)

    from main import app

    logger.info("Starting Wikimem on http://%s:%d", settings.host, settings.port)
    logger.info("MCP endpoint: %s", settings.mcp_url)

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
