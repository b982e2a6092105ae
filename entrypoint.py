import sys
import uvicorn
from constants import HOST, PORT, RELOAD, LOG_LEVEL, LOG_FILE, SERVICE_NAME
from logging_config import setup_logging, get_logger

# Setup logging before importing app
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def main():
    logger.info(f"Starting {SERVICE_NAME} signaling server on {HOST}:{PORT}")
    try:
        uvicorn.run("app:app", host=HOST, port=PORT, reload=RELOAD, log_level=LOG_LEVEL.lower())
    except OSError as e:
        logger.critical(f"Could not start server on {HOST}:{PORT}: {e}", exc_info=True)
        sys.exit(1)
    except SystemExit as e:
        # uvicorn logs bind errors itself and exits with its own status code
        if e.code:
            logger.critical(f"Could not start server on {HOST}:{PORT}: uvicorn exited with status {e.code}")
            sys.exit(1)
        raise


if __name__ == "__main__":
    main()
