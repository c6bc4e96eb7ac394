#!/usr/bin/env python3
"""
Harper Dash results server with SQLite persistence.

Answers JSON datagrams: run submissions and the three leaderboard queries.
Also broadcasts its presence so clients on the LAN can find it.
"""

import argparse
import json
import logging
import socket
import threading
import time
from typing import Optional, Tuple

from .constants import BUFFER_SIZE, DB_FILE, DISCOVERY_INTERVAL, DISCOVERY_PORT, GAME_PORT
from .errors import ValidationError
from .server_db import Database

logger = logging.getLogger(__name__)


# -------- Server Class --------

class RunnerServer:
    def __init__(self, db: Optional[Database] = None, port: int = GAME_PORT,
                 discovery_port: int = DISCOVERY_PORT, discovery: bool = True):
        # Database
        self.db = db or Database()

        # Network (sockets are opened in start())
        self.port = port
        self.discovery_port = discovery_port
        self.discovery_enabled = discovery
        self.game_sock: Optional[socket.socket] = None
        self.discovery_sock: Optional[socket.socket] = None

        # Threading
        self.running = threading.Event()
        self.stopped = threading.Event()
        self.network_thread = threading.Thread(target=self._network_loop, daemon=True)
        self.discovery_thread = threading.Thread(target=self._discovery_loop, daemon=True)

        self.handlers = {
            "submit_run": self._handle_submit,
            "top_runs": self._handle_top_runs,
            "leaderboard_cumulative": self._handle_cumulative,
            "player_runs": self._handle_player_runs,
        }

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port) of the game socket."""
        if self.game_sock is None:
            raise RuntimeError("server not started")
        return self.game_sock.getsockname()

    def start(self):
        """Bind sockets and start all server loops."""
        self.game_sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.game_sock.bind(('', self.port))
        self.game_sock.settimeout(0.5)
        self.running.set()
        self.network_thread.start()

        if self.discovery_enabled:
            self.discovery_sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            self.discovery_sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            self.discovery_thread.start()
        logger.info("Server listening on UDP port %d", self.address[1])

    def stop(self):
        """Stop all server loops."""
        logger.info("Stopping server...")
        self.running.clear()
        self.stopped.set()
        if self.network_thread.is_alive():
            self.network_thread.join()
        if self.discovery_thread.is_alive():
            self.discovery_thread.join()
        if self.game_sock:
            self.game_sock.close()
        if self.discovery_sock:
            self.discovery_sock.close()
        self.db.close()
        logger.info("Server stopped.")

    def _discovery_loop(self):
        """Broadcasts server presence for clients to find."""
        logger.info("Discovery thread started. Broadcasting on port %d.", self.discovery_port)
        msg = json.dumps({"type": "discovery", "port": self.address[1]}).encode('utf-8')
        while self.running.is_set():
            try:
                self.discovery_sock.sendto(msg, ('<broadcast>', self.discovery_port))
            except OSError as e:
                if self.running.is_set():
                    logger.warning("Discovery error: %s", e)
            self.stopped.wait(DISCOVERY_INTERVAL)

    def _network_loop(self):
        """Listens for and answers incoming UDP requests."""
        while self.running.is_set():
            try:
                data, addr = self.game_sock.recvfrom(BUFFER_SIZE)
            except socket.timeout:
                continue
            except OSError as e:
                if self.running.is_set():
                    logger.warning("Receive error: %s", e)
                continue

            try:
                reply = self.dispatch(data)
                self.game_sock.sendto(json.dumps(reply).encode('utf-8'), addr)
            except Exception:
                logger.exception("Error handling request from %s", addr)

    def dispatch(self, data: bytes) -> dict:
        """Decodes one request datagram and returns the reply message."""
        try:
            message = json.loads(data.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return self._error("unknown_message", "Malformed request.")
        if not isinstance(message, dict):
            return self._error("unknown_message", "Malformed request.")

        msg_type = message.get("type")
        handler = self.handlers.get(msg_type) if isinstance(msg_type, str) else None
        if handler is None:
            reply = self._error("unknown_message", f"Unknown message type: {msg_type!r}")
        else:
            reply = handler(message)

        # Clients match replies to requests by this id
        if "request_id" in message:
            reply["request_id"] = message["request_id"]
        return reply

    def _handle_submit(self, message: dict) -> dict:
        try:
            run = self.db.submit_run(
                message.get("player_name"),
                message.get("score"),
                message.get("duration_seconds"),
            )
        except ValidationError as e:
            logger.info("Rejected submission: %s", e)
            return self._error("submit_failed", str(e))
        return {"type": "run_created", "run": run.to_dict()}

    def _handle_top_runs(self, message: dict) -> dict:
        runs = self.db.top_runs(message.get("limit"))
        return {"type": "top_runs", "runs": [r.to_dict() for r in runs]}

    def _handle_cumulative(self, message: dict) -> dict:
        players = self.db.cumulative_leaderboard(message.get("limit"))
        return {"type": "leaderboard_cumulative", "players": [p.to_dict() for p in players]}

    def _handle_player_runs(self, message: dict) -> dict:
        player_name = message.get("player_name")
        try:
            runs = self.db.player_runs(player_name, message.get("limit"))
        except ValidationError as e:
            return self._error("request_failed", str(e))
        return {
            "type": "player_runs",
            "player_name": player_name.strip(),
            "runs": [r.to_dict() for r in runs],
        }

    @staticmethod
    def _error(error_type: str, message: str) -> dict:
        return {"type": error_type, "message": message}


def main(argv=None):
    parser = argparse.ArgumentParser(description="Harper Dash results server")
    parser.add_argument("--port", type=int, default=GAME_PORT)
    parser.add_argument("--db", default=DB_FILE, help="SQLite database file")
    parser.add_argument("--no-discovery", action="store_true", help="Do not broadcast on the LAN")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    server = RunnerServer(Database(args.db), port=args.port, discovery=not args.no_discovery)
    try:
        server.start()
        while server.running.is_set():
            time.sleep(0.1)
    except KeyboardInterrupt:
        server.stop()


if __name__ == "__main__":
    main()
