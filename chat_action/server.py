"""Run the action service with uvicorn.

Usage:
    chat-action-server --host 0.0.0.0 --port 8000
"""

import argparse
import logging
import os

import uvicorn


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Google Hangouts Chat action server")
    parser.add_argument("--host", default=os.getenv("HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    args = parser.parse_args(argv)

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    uvicorn.run("chat_action.webapi:app", host=args.host, port=args.port, log_level=log_level.lower())


if __name__ == "__main__":
    main()
