import logging
import os

import uvicorn
from dotenv import load_dotenv

from hours_proxy.logging_config import setup_logging


# ruff: noqa: D103
def main() -> None:
    load_dotenv()
    setup_logging()
    logger = logging.getLogger(__name__)

    port = int(os.getenv("PORT", "4000"))
    logger.info(f"Proxy server running on http://localhost:{port}")
    uvicorn.run("hours_proxy.api.main:app", host="0.0.0.0", port=port, log_config=None)


if __name__ == "__main__":
    main()
