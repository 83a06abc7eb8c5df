import signal
import threading

from radius_vlan.config.settings import Settings
from radius_vlan.radius.secret import StaticSecretProvider
from radius_vlan.radius.server import RADIUSServer
from radius_vlan.utils.logger import get_logger
from radius_vlan.utils.metrics import start_metrics_server

logger = get_logger(__name__)


class RadiusVlanServerManager:
    """Owns the RADIUS server for the lifetime of the process."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.secret_provider = StaticSecretProvider(settings.secret)
        self.server = RADIUSServer(settings, self.secret_provider)
        self.running = False
        self._shutdown = threading.Event()

    def start(self) -> bool:
        """Start serving and block until a shutdown signal arrives."""
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)
        try:
            start_metrics_server(
                self.settings.metrics_address, self.settings.metrics_port
            )
            self.server.start()
            self.running = True
            self._print_startup_info()
            self._shutdown.wait()
        except KeyboardInterrupt:
            logger.info("Received interrupt signal")
        except OSError as e:
            logger.error(
                "Server error",
                event="service.start_failed",
                error=str(e),
                exc_info=True,
            )
            return False
        finally:
            self.stop()
        return True

    def stop(self):
        """Stop the RADIUS server"""
        self._shutdown.set()
        if self.running:
            logger.info("Shutting down RADIUS server...")
            self.running = False
            self.server.stop()
            stats = self.server.get_stats()
            logger.info(
                "Server stopped",
                event="service.summary",
                auth_requests=stats["auth_requests"],
                auth_accepts=stats["auth_accepts"],
                auth_rejects=stats["auth_rejects"],
                dropped_requests=stats["dropped_requests"],
            )

    def _signal_handler(self, signum, frame):
        """Handle system signals"""
        logger.info("Received signal %s", signum, event="service.signal")
        self._shutdown.set()

    def _print_startup_info(self):
        """Log a short summary of what is being served"""
        default_vlans = sum(
            1 for entry in self.settings.servers.values() if entry.default_vlan_enabled
        )
        logger.info(
            "Server ready - waiting for requests",
            event="service.ready",
            listen=f"{self.server.host}:{self.server.port}",
            servers=len(self.settings.servers),
            servers_with_default_vlan=default_vlans,
            users=len(self.settings.users),
            workers=self.server.workers,
        )
