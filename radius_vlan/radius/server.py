"""
RADIUS Server Implementation

UDP authentication server that hands every Access-Request to a worker
pool running :func:`radius_vlan.radius.handlers.handle_auth_request`.

RFC 2865 - Remote Authentication Dial In User Service (RADIUS)
"""

import socket
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from radius_vlan.config.settings import Settings
from radius_vlan.utils.logger import get_logger

from .constants import MAX_RADIUS_PACKET_LENGTH
from .handlers import AccessRequestHandler, handle_auth_request
from .secret import SecretProvider, StaticSecretProvider

logger = get_logger("radius_vlan.radius.server", component="radius")


class RADIUSServer:
    """RADIUS Server implementation"""

    def __init__(
        self,
        settings: Settings,
        secret_provider: SecretProvider | None = None,
        *,
        rcvbuf: int = 1048576,
    ):
        self.settings = settings
        self.host = settings.listen_address
        self.port = settings.listen_port
        self.secret_provider = secret_provider or StaticSecretProvider(settings.secret)
        self.request_handler = AccessRequestHandler(settings)

        self.running = False
        self.auth_socket: socket.socket | None = None
        self._serve_thread: threading.Thread | None = None

        # Config knobs
        self.socket_timeout = settings.socket_timeout
        self.rcvbuf = rcvbuf
        self.worker_count = settings.workers
        # Packet worker pool (created on start)
        self._executor: ThreadPoolExecutor | None = None

        # Statistics
        self.stats = {
            "auth_requests": 0,
            "auth_accepts": 0,
            "auth_rejects": 0,
            "fallback_accepts": 0,
            "dropped_requests": 0,
            "invalid_packets": 0,
        }
        self._stats_lock = threading.Lock()

    def _inc(self, key: str, amount: int = 1) -> None:
        with self._stats_lock:
            self.stats[key] = self.stats.get(key, 0) + amount

    @property
    def workers(self) -> int:
        return self.worker_count

    def _bind(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_DGRAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, self.rcvbuf)
        except OSError as socket_setopt_exc:
            # Socket buffer size tuning failed, continue with default
            logger.warning(
                "Failed to set RADIUS socket buffer size",
                event="radius.socket.rcvbuf_failed",
                error=str(socket_setopt_exc),
            )
        try:
            sock.bind((self.host, self.port))
        except OSError:
            sock.close()
            raise
        sock.settimeout(self.socket_timeout)
        return sock

    def start(self):
        """Bind the socket and start the receive loop in a background thread.

        Raises:
            OSError: when the listen address cannot be bound.
        """
        if self.running:
            logger.warning("RADIUS server already running")
            return

        self.auth_socket = self._bind()
        # Port 0 binds an ephemeral port; report the real one
        self.port = self.auth_socket.getsockname()[1]
        self.running = True

        self._executor = ThreadPoolExecutor(
            max_workers=self.worker_count, thread_name_prefix="RADIUS"
        )
        self._serve_thread = threading.Thread(
            target=self._serve, daemon=True, name="RADIUS-Auth"
        )
        self._serve_thread.start()

        logger.info(
            "RADIUS server listening",
            event="service.start",
            service="radius",
            host=self.host,
            auth_port=self.port,
            workers=self.worker_count,
        )

    def stop(self):
        """Stop RADIUS server"""
        self.running = False

        if self._serve_thread is not None:
            self._serve_thread.join(timeout=self.socket_timeout + 1.0)
            self._serve_thread = None

        if self.auth_socket:
            try:
                self.auth_socket.close()
            except OSError as socket_close_exc:
                logger.warning(
                    "Failed to close RADIUS authentication socket",
                    event="radius.auth.socket_close_failed",
                    error=str(socket_close_exc),
                )
            finally:
                self.auth_socket = None

        if self._executor:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None

        logger.info(
            "RADIUS server stopped",
            event="service.stop",
            service="radius",
        )

    def _serve(self):
        """Receive loop; runs until :meth:`stop` clears ``running``."""
        sock = self.auth_socket
        assert sock is not None
        while self.running:
            try:
                data, addr = sock.recvfrom(MAX_RADIUS_PACKET_LENGTH)
            except TimeoutError:
                continue
            except OSError as e:
                if self.running:
                    logger.warning(
                        "RADIUS auth server socket error",
                        event="radius.auth.socket_error",
                        error=str(e),
                    )
                break
            executor = self._executor
            if executor is None:
                break
            # IPv6 sockets report (host, port, flowinfo, scope_id)
            executor.submit(self._handle_auth_request, data, (addr[0], addr[1]))

    def _handle_auth_request(self, data: bytes, addr: tuple[str, int]):
        """Delegate authentication request handling to shared handler."""
        return handle_auth_request(self, data, addr)

    def get_stats(self) -> dict[str, Any]:
        """Get server statistics"""
        with self._stats_lock:
            stats = dict(self.stats)
        auth_requests = stats["auth_requests"]
        stats["auth_success_rate"] = (
            (stats["auth_accepts"] / auth_requests * 100) if auth_requests > 0 else 0
        )
        stats["configured_servers"] = len(self.settings.servers)
        stats["configured_users"] = len(self.settings.users)
        stats["running"] = self.running
        return stats


__all__ = ["RADIUSServer"]
