"""
Serve the dashboard to browsers. Each browser session gets its own app process.

textual-serve speaks plain HTTP; when the TLS certificate and key are
present the public URL is advertised as https and TLS is terminated in front
of this process with those files.
"""

import os
import shlex
import sys

from textual_serve.server import Server

from utils.config import get_settings
from utils.logger import get_logger

_logger = get_logger(__name__)

MAIN_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "main.py")


def build_server() -> Server:
    settings = get_settings()

    if not settings.gemini_api_key:
        _logger.warning("GEMINI_API_KEY not set, AJC-Bot will answer with its fallback.")

    if settings.tls_available:
        public_url = f"https://{settings.public_host}:{settings.serve_port}"
        _logger.info(
            f"TLS certificate {settings.tls_cert_file} found, advertising {public_url}"
        )
    else:
        public_url = f"http://{settings.public_host}:{settings.serve_port}"
        _logger.warning("SSL certificates not found. Skipping HTTPS.")

    command = f"{shlex.quote(sys.executable)} {shlex.quote(MAIN_PATH)}"
    return Server(
        command,
        host=settings.serve_host,
        port=settings.serve_port,
        title="AJC International",
        public_url=public_url,
    )


def main() -> None:
    settings = get_settings()
    server = build_server()
    _logger.info(
        f"HTTP Server running at http://{settings.serve_host}:{settings.serve_port}"
    )
    server.serve()


if __name__ == "__main__":
    main()
