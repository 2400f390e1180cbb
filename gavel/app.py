"""HTTP application wiring and the service entry point."""

from __future__ import annotations

import argparse
import json
import os
import signal
import threading
from http import HTTPStatus
from typing import Any

from dotenv import load_dotenv
from flask import Flask, Response, request
from pymongo.errors import PyMongoError

from gavel import logger
from gavel.auction_closer import AuctionCloser
from gavel.auction_repository import AuctionRepository
from gavel.auction_usecase import AuctionUseCase
from gavel.bid_repository import BidRepository
from gavel.bid_usecase import BidUseCase
from gavel.controllers import AuctionController, BidController, UserController
from gavel.mongodb import database_from_env
from gavel.user_repository import UserRepository
from gavel.user_usecase import UserUseCase

DEFAULT_ENV_FILE = "cmd/auction/.env"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080


def _respond(reply: tuple[int, Any]) -> Response:
    status, body = reply
    if status == HTTPStatus.CREATED and body is None:
        return Response(status=status)
    return Response(json.dumps(body), status=status, mimetype="application/json")


def create_app(
    user_controller: UserController,
    bid_controller: BidController,
    auction_controller: AuctionController,
) -> Flask:
    """Build the Flask application with every route bound to its handler."""
    app = Flask("gavel")

    @app.get("/auction")
    def find_auctions() -> Response:
        return _respond(
            auction_controller.find_auctions(
                request.args.get("status", ""),
                request.args.get("category", ""),
                request.args.get("productName", ""),
            )
        )

    @app.get("/auction/<auction_id>")
    def find_auction_by_id(auction_id: str) -> Response:
        return _respond(auction_controller.find_auction_by_id(auction_id))

    @app.post("/auction")
    def create_auction() -> Response:
        return _respond(auction_controller.create_auction(request.get_data()))

    @app.get("/auction/winner/<auction_id>")
    def find_winning_bid(auction_id: str) -> Response:
        return _respond(auction_controller.find_winning_bid_by_auction_id(auction_id))

    @app.post("/bid")
    def create_bid() -> Response:
        return _respond(bid_controller.create_bid(request.get_data()))

    @app.get("/bid/<auction_id>")
    def find_bids(auction_id: str) -> Response:
        return _respond(bid_controller.find_bid_by_auction_id(auction_id))

    @app.get("/user/<user_id>")
    def find_user(user_id: str) -> Response:
        return _respond(user_controller.find_user_by_id(user_id))

    return app


def init_dependencies(
    database: Any,
) -> tuple[UserController, BidController, AuctionController, AuctionCloser]:
    """Build repositories, use cases and controllers over one database."""
    auction_repository = AuctionRepository(database)
    bid_repository = BidRepository(database, auction_repository)
    user_repository = UserRepository(database)

    user_controller = UserController(UserUseCase(user_repository))
    auction_controller = AuctionController(
        AuctionUseCase(auction_repository, bid_repository)
    )
    bid_controller = BidController(BidUseCase(bid_repository))
    auction_closer = AuctionCloser(auction_repository)
    return user_controller, bid_controller, auction_controller, auction_closer


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="gavel", description="Run the auction service.")
    parser.add_argument("--env-file", default=DEFAULT_ENV_FILE)
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the service until SIGINT or SIGTERM; return the exit status."""
    args = _parse_args(argv)

    if not os.path.isfile(args.env_file):
        logger.error("Error trying to load env variables", None)
        return 1
    try:
        load_dotenv(args.env_file)
    except (OSError, ValueError) as err:
        logger.error("Error trying to load env variables", err)
        return 1

    try:
        database = database_from_env()
    except PyMongoError as err:
        logger.error(str(err), err)
        return 1

    user_controller, bid_controller, auction_controller, auction_closer = (
        init_dependencies(database)
    )
    auction_closer.start()
    app = create_app(user_controller, bid_controller, auction_controller)

    stop = threading.Event()
    failures: list[BaseException] = []

    def serve() -> None:
        try:
            app.run(host=args.host, port=args.port, use_reloader=False)
        except Exception as err:
            logger.error("Error starting server", err)
            failures.append(err)
        finally:
            stop.set()

    previous = {
        sig: signal.signal(sig, lambda *_: stop.set())
        for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        threading.Thread(target=serve, name="http-server", daemon=True).start()
        while not stop.wait(0.5):
            pass
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    logger.info("Shutting down server...")
    auction_closer.stop()
    logger.info("Server stopped")
    return 1 if failures else 0