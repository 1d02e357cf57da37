"""Application wiring, HTTP server lifecycle, logging and the service entry point."""

from __future__ import annotations

import argparse
import json
import logging
import os
import signal
import sqlite3
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, Response
from werkzeug.serving import WSGIRequestHandler, make_server

from prreview.database import connect
from prreview.metrics import PR_LIFECYCLE_DURATION_HOURS
from prreview.pr_reviewers_storage import PrReviewersStorage
from prreview.pull_request_service import PullRequestService
from prreview.pull_request_storage import PullRequestStorage
from prreview.team_service import TeamService
from prreview.team_storage import TeamStorage
from prreview.user_service import UserService
from prreview.user_storage import UserStorage
from prreview.web import create_app

GS_TIMEOUT = 5.0
READ_TIMEOUT = 5.0
WRITE_TIMEOUT = 10.0

logger = logging.getLogger(__name__)


class _RequestHandler(WSGIRequestHandler):
    # Idle socket timeout covering both reading the request and writing the reply.
    timeout = max(READ_TIMEOUT, WRITE_TIMEOUT)


class APIServer:
    """A threaded HTTP server that can be stopped gracefully."""

    def __init__(self, app: Flask, host: str, port: int) -> None:
        self._server = make_server(
            host, port, app, threaded=True, request_handler=_RequestHandler
        )
        self._started = threading.Event()

    @property
    def port(self) -> int:
        return self._server.server_port

    def start(self) -> None:
        """Serve requests until shutdown is called."""
        self._started.set()
        try:
            self._server.serve_forever()
        except OSError:
            logger.critical("server stopped with an error", exc_info=True)
            raise

    def shutdown(self, timeout: float) -> None:
        """Stop serving, waiting at most timeout seconds for the loop to end."""
        if not self._started.is_set():
            self._server.server_close()
            logger.info("shutdown completed before timeout.")
            return
        stopper = threading.Thread(target=self._server.shutdown, daemon=True)
        stopper.start()
        stopper.join(timeout)
        if stopper.is_alive():
            logger.error("timeout shutting down server")
            return
        self._server.server_close()
        logger.info("shutdown completed before timeout.")


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, timezone.utc).astimezone()
        entry = {
            "level": record.levelname.lower(),
            "timestamp": timestamp.isoformat(timespec="milliseconds"),
            "caller": f"{record.filename}:{record.lineno}",
            "msg": record.getMessage(),
            "pid": os.getpid(),
        }
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def configure_logging(log_dir: str | os.PathLike[str] = "logs") -> logging.Logger:
    """Send the package's logs as JSON lines to log_dir/log.txt and stdout."""
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    package_logger = logging.getLogger("prreview")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    formatter = _JsonFormatter()
    for handler in (
        logging.FileHandler(directory / "log.txt", encoding="utf-8"),
        logging.StreamHandler(sys.stdout),
    ):
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)
    package_logger.setLevel(logging.INFO)
    package_logger.propagate = False
    return package_logger


def build_app(conn: sqlite3.Connection) -> Flask:
    """Wire storages and services on conn into the web application."""
    team_repo = TeamStorage(conn)
    user_repo = UserStorage(conn)
    pr_repo = PullRequestStorage(conn)
    reviewers_repo = PrReviewersStorage(conn)

    app = create_app(
        TeamService(team_repo, user_repo),
        UserService(user_repo, reviewers_repo, team_repo),
        PullRequestService(pr_repo, reviewers_repo, user_repo, team_repo),
    )

    def metrics() -> Response:
        return Response(
            PR_LIFECYCLE_DURATION_HOURS.render(),
            mimetype="text/plain",
            headers={"Content-Type": "text/plain; version=0.0.4; charset=utf-8"},
        )

    app.add_url_rule("/metrics", "metrics", metrics, methods=["GET"])
    return app


def main(argv: list[str] | None = None) -> int:
    """Run the service until SIGINT or SIGTERM."""
    parser = argparse.ArgumentParser(
        prog="prreview", description="Pull request reviewer assignment service."
    )
    parser.parse_args(argv)

    configure_logging()

    env_file = Path(".env")
    if not env_file.is_file():
        logger.critical("error loading .env file, exiting...")
        return 1
    load_dotenv(env_file)

    try:
        conn = connect()
    except (ValueError, sqlite3.Error):
        logger.critical("error connecting to database, exiting...")
        return 1

    try:
        try:
            port = int(os.environ.get("API_PORT") or 0)
            server = APIServer(build_app(conn), "0.0.0.0", port)
        except (ValueError, OSError):
            logger.critical("error starting server, exiting...", exc_info=True)
            return 1

        stop = threading.Event()
        previous = {
            sig: signal.signal(sig, lambda *_: stop.set())
            for sig in (signal.SIGINT, signal.SIGTERM)
        }
        thread = threading.Thread(target=server.start, daemon=True)
        thread.start()
        try:
            while not stop.wait(0.5):
                if not thread.is_alive():
                    break
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)

        print()
        logger.info("shutting down server...")
        server.shutdown(GS_TIMEOUT)
        return 0
    finally:
        conn.close()


if __name__ == "__main__":
    raise SystemExit(main())