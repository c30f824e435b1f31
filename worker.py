"""
Confirmation worker.

Consumes the confirmation queue until SIGTERM or SIGINT. Run one or more
alongside the web app: python worker.py
"""

import logging
import signal
import threading

from dotenv import load_dotenv

from clients import ValkeyClient, get_valkey_url
from core.job_queue import Worker
from main import build_confirmation_service, build_woocommerce, configure_logging, load_config

logger = logging.getLogger(__name__)


def main() -> None:
    load_dotenv()
    configure_logging()

    config = load_config()
    valkey = ValkeyClient(get_valkey_url())
    confirmations = build_confirmation_service(config, valkey, build_woocommerce(config))

    stop = threading.Event()

    def request_stop(signum, frame):
        logger.info(f"Received signal {signum}, finishing current job")
        stop.set()

    signal.signal(signal.SIGTERM, request_stop)
    signal.signal(signal.SIGINT, request_stop)

    try:
        Worker(confirmations.queue, confirmations.handle).run(stop)
    finally:
        valkey.close()


if __name__ == "__main__":
    main()
