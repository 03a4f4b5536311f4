"""
ApiServer class for CLI control of the FastAPI application.
"""
import logging
import os
import uvicorn

from settings import PORT, LOG_LEVEL, BIND_ADDRESS

logger = logging.getLogger(__name__)

DEBUG_LOG_FILE = "api_debug.log"


def setup_debug_logging(log_file: str = DEBUG_LOG_FILE) -> str:
    """Send DEBUG logs to the console and an appending log file

    Returns:
        Absolute path of the log file
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    log_path = os.path.abspath(log_file)
    file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    file_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logger.info(f"Debug logging enabled - appending to {log_path}")
    return log_path


class ApiServer:
    """API server wrapper for CLI control"""

    def __init__(self, debug: bool = False, bind_address: str = None, port: int = None):
        self.server = None
        self.config = None
        self.debug = debug
        self.bind_address = bind_address or BIND_ADDRESS
        self.port = port or PORT

        if debug:
            setup_debug_logging()

    def run(self):
        """Run the API server (blocking)"""
        # Imported here so that settings overrides apply before the app is built
        from .app import app

        logger.info(f"Starting Body Tracker auth API on http://{self.bind_address}:{self.port}")
        self.config = uvicorn.Config(
            app,
            host=self.bind_address,
            port=self.port,
            log_level="debug" if self.debug else LOG_LEVEL,
            access_log=False
        )
        self.server = uvicorn.Server(self.config)
        self.server.run()

    def stop(self):
        """Stop the API server"""
        if self.server:
            self.server.should_exit = True
