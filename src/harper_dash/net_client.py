"""
net_client.py: Talks to the results server (discovery, run submission and
leaderboard queries).

Leaderboard reads never raise into the game loop: on any network failure
the last good snapshot stays in place.
"""

import itertools
import json
import logging
import socket
import threading
import time
from typing import Dict, List, Optional, Tuple

from .constants import (
    BUFFER_SIZE, CUMULATIVE_LIMIT, DISCOVERY_PORT, GAME_PORT, PLAYER_RUNS_LIMIT,
    REQUEST_TIMEOUT, SERVER_DISCOVERY_TIMEOUT, TOP_RUNS_LIMIT
)
from .data_models import GameRun, PlayerStats

logger = logging.getLogger(__name__)


class RequestFailed(Exception):
    """No usable reply arrived for a request."""


class NetworkClient:
    def __init__(self, server_addr: Optional[Tuple[str, int]] = None,
                 timeout: float = REQUEST_TIMEOUT,
                 discovery_port: int = DISCOVERY_PORT):
        self.server_addr = server_addr
        self.timeout = timeout
        self.discovery_port = discovery_port

        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.settimeout(0.1)
        # One request in flight at a time on the shared socket
        self.request_lock = threading.Lock()
        self.request_ids = itertools.count(1)

        self.state_lock = threading.Lock()
        self.top_runs: List[GameRun] = []
        self.cumulative: List[PlayerStats] = []
        self.history: List[GameRun] = []
        self.history_player: Optional[str] = None
        self.last_error: Optional[str] = None

    def close(self):
        self.sock.close()

    def discover_server(self, timeout: float = SERVER_DISCOVERY_TIMEOUT) -> Optional[Tuple[str, int]]:
        """Listens for the server's broadcast on the discovery port."""
        logger.info("Searching for server on broadcast port %d...", self.discovery_port)
        discovery_sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        discovery_sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        discovery_sock.settimeout(0.5)
        try:
            discovery_sock.bind(('', self.discovery_port))
            start_time = time.monotonic()
            while time.monotonic() - start_time < timeout:
                try:
                    data, addr = discovery_sock.recvfrom(BUFFER_SIZE)
                    message = json.loads(data.decode('utf-8'))
                except socket.timeout:
                    continue
                except (UnicodeDecodeError, json.JSONDecodeError):
                    continue
                if isinstance(message, dict) and message.get("type") == "discovery":
                    self.server_addr = (addr[0], message.get("port", GAME_PORT))
                    logger.info("Server discovered at %s:%d", *self.server_addr)
                    return self.server_addr
        except OSError as e:
            logger.warning("Discovery error: %s", e)
        finally:
            discovery_sock.close()
        return None

    # ----------------- Request / reply -----------------

    def request(self, message: dict, expect: Tuple[str, ...]) -> dict:
        """Sends one request and waits for a reply whose type is in `expect`."""
        if not self.server_addr:
            raise RequestFailed("No server")

        with self.request_lock:
            request_id = next(self.request_ids)
            payload = json.dumps(dict(message, request_id=request_id)).encode('utf-8')
            try:
                self.sock.sendto(payload, self.server_addr)
            except OSError as e:
                raise RequestFailed(f"Send failed: {e}") from e

            deadline = time.monotonic() + self.timeout
            while time.monotonic() < deadline:
                try:
                    data, _ = self.sock.recvfrom(BUFFER_SIZE)
                    reply = json.loads(data.decode('utf-8'))
                except socket.timeout:
                    continue
                except (UnicodeDecodeError, json.JSONDecodeError):
                    continue
                except OSError as e:
                    raise RequestFailed(f"Receive failed: {e}") from e
                # Late replies to earlier, timed-out requests are dropped
                if not isinstance(reply, dict) or reply.get("request_id") != request_id:
                    continue
                if reply.get("type") in expect:
                    return reply
                if reply.get("type") == "unknown_message":
                    raise RequestFailed(reply.get("message", "Rejected by server"))
        raise RequestFailed("Timed out waiting for server")

    def submit_run(self, player_name: str, score: int, duration_seconds: int) -> Tuple[bool, str]:
        """
        Submits a finished run once. Returns (ok, status message); a
        rejected or lost submission is reported, never retried.
        """
        try:
            reply = self.request({
                "type": "submit_run",
                "player_name": player_name,
                "score": score,
                "duration_seconds": duration_seconds,
            }, expect=("run_created", "submit_failed"))
        except RequestFailed as e:
            logger.warning("Error submitting score: %s", e)
            return False, "Error submitting score."

        if reply["type"] == "submit_failed":
            return False, reply.get("message", "Submission rejected.")
        return True, "Score submitted!"

    # ----------------- Leaderboards -----------------

    def refresh_leaderboards(self, top_limit: int = TOP_RUNS_LIMIT,
                             cumulative_limit: int = CUMULATIVE_LIMIT) -> bool:
        """Reloads both leaderboards. On failure the previous data is kept."""
        try:
            top = self.request({"type": "top_runs", "limit": top_limit}, expect=("top_runs",))
            cumulative = self.request(
                {"type": "leaderboard_cumulative", "limit": cumulative_limit},
                expect=("leaderboard_cumulative",))
            top_runs = [GameRun.from_dict(r) for r in top["runs"]]
            players = [PlayerStats.from_dict(p) for p in cumulative["players"]]
        except (RequestFailed, KeyError, TypeError) as e:
            logger.warning("Error fetching leaderboards: %s", e)
            with self.state_lock:
                self.last_error = str(e)
            return False

        with self.state_lock:
            self.top_runs = top_runs
            self.cumulative = players
            self.last_error = None
        return True

    def fetch_player_runs(self, player_name: str, limit: int = PLAYER_RUNS_LIMIT) -> bool:
        try:
            reply = self.request(
                {"type": "player_runs", "player_name": player_name, "limit": limit},
                expect=("player_runs", "request_failed"))
            if reply["type"] == "request_failed":
                raise RequestFailed(reply.get("message", "Request rejected"))
            runs = [GameRun.from_dict(r) for r in reply["runs"]]
        except (RequestFailed, KeyError, TypeError) as e:
            logger.warning("Error fetching history for %s: %s", player_name, e)
            with self.state_lock:
                self.last_error = str(e)
            return False

        with self.state_lock:
            self.history = runs
            self.history_player = player_name
            self.last_error = None
        return True

    def refresh_in_background(self, player_name: Optional[str] = None) -> threading.Thread:
        """Runs the leaderboard (and optionally history) refresh off the game loop."""
        def work():
            self.refresh_leaderboards()
            if player_name:
                self.fetch_player_runs(player_name)

        thread = threading.Thread(target=work, daemon=True)
        thread.start()
        return thread

    def snapshot(self) -> Dict:
        """Safely retrieve the latest leaderboard data."""
        with self.state_lock:
            return {
                "top_runs": list(self.top_runs),
                "cumulative": list(self.cumulative),
                "history": list(self.history),
                "history_player": self.history_player,
                "stale": self.last_error is not None,
            }
