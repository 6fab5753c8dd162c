import os

import uvicorn

from doc_chat.logger import GLOBAL_LOGGER as log


def main() -> None:
    port = int(os.getenv("PORT", "5000"))
    host = os.getenv("HOST", "0.0.0.0")
    log.info("Starting server | host=%s | port=%d", host, port)
    uvicorn.run("api.main:app", host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
