"""Access-Request decision handling.

:class:`AccessRequestHandler` holds the per-request policy: whitelist
check, credential extraction, authentication, the accept/default-VLAN/
reject decision and the tunnel attribute sanitation. :func:`handle_auth_request`
wires it to the UDP server (decode, count, send).
"""

import uuid
from dataclasses import dataclass
from typing import Any

from radius_vlan.auth.engine import authenticate
from radius_vlan.config.settings import Settings
from radius_vlan.exceptions import ProtocolError
from radius_vlan.utils.logger import bind_context, clear_context, get_logger
from radius_vlan.utils.metrics import record_decision, record_drop

from .authenticator import verify_message_authenticator
from .constants import (
    ATTR_USER_NAME,
    ATTR_USER_PASSWORD,
    CODE_NAMES,
    RADIUS_ACCESS_ACCEPT,
    RADIUS_ACCESS_REJECT,
    RADIUS_ACCESS_REQUEST,
)
from .packet import RADIUSPacket
from .response import ResponseBuilder, send_response, strip_tunnel_attributes

logger = get_logger("radius_vlan.radius.handlers", component="radius")

RESULT_ACCEPT = "accept"
RESULT_FALLBACK_ACCEPT = "fallback_accept"
RESULT_REJECT = "reject"


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of the decision step for one request."""

    code: int
    vlan: int | None
    result: str
    reason: str

    @property
    def accepted(self) -> bool:
        return self.code == RADIUS_ACCESS_ACCEPT


def _decode_text(attr) -> str | None:
    if attr is None:
        return None
    try:
        return attr.value.decode("utf-8")
    except UnicodeDecodeError:
        return None


def extract_credentials(request: RADIUSPacket) -> Credentials | None:
    """Read User-Name and the decrypted User-Password.

    Returns ``None`` when either is missing or is not valid UTF-8.
    """
    username = _decode_text(request.get_attribute(ATTR_USER_NAME))
    password = _decode_text(request.get_attribute(ATTR_USER_PASSWORD))
    if username is None or password is None:
        return None
    return Credentials(username=username, password=password)


class AccessRequestHandler:
    """Decides Access-Requests against a shared, read-only :class:`Settings`."""

    def __init__(self, settings: Settings, response_builder: ResponseBuilder | None = None):
        self.settings = settings
        self.response_builder = response_builder or ResponseBuilder()

    def is_permitted(self, addr: Any) -> bool:
        """Whitelist check. Unlisted senders get no response at all."""
        if self.settings.is_whitelisted(addr):
            return True
        logger.warning(
            "Received request from server not in whitelist",
            event="radius.auth.dropped_unlisted",
            client_ip=str(addr[0] if isinstance(addr, tuple) else addr),
        )
        return False

    def decide(self, request: RADIUSPacket, addr: Any) -> AccessDecision:
        credentials = extract_credentials(request)
        if credentials is None:
            logger.warning(
                "Access-Request missing or undecodable User-Name/User-Password",
                event="radius.auth.missing_credentials",
                has_username=request.get_attribute(ATTR_USER_NAME) is not None,
                has_password=request.get_attribute(ATTR_USER_PASSWORD) is not None,
            )
            return AccessDecision(
                RADIUS_ACCESS_REJECT, None, RESULT_REJECT, "missing_credentials"
            )

        outcome = authenticate(
            self.settings, credentials.username, credentials.password
        )
        if outcome.authenticated:
            return AccessDecision(
                RADIUS_ACCESS_ACCEPT, outcome.vlan, RESULT_ACCEPT, "authenticated"
            )

        # Fail open to the server's default segment when one is configured
        default_vlan = self.settings.server_default_vlan(addr)
        if default_vlan is not None:
            return AccessDecision(
                RADIUS_ACCESS_ACCEPT,
                default_vlan,
                RESULT_FALLBACK_ACCEPT,
                "server_default_vlan",
            )
        return AccessDecision(
            RADIUS_ACCESS_REJECT, None, RESULT_REJECT, "authentication_failed"
        )

    def respond(
        self, request: RADIUSPacket, addr: Any
    ) -> tuple[RADIUSPacket, AccessDecision]:
        """Decide and compose the response for an already admitted request."""
        decision = self.decide(request, addr)

        strip_tunnel_attributes(request)
        if decision.accepted:
            response = self.response_builder.create_access_accept(
                request, decision.vlan
            )
        else:
            response = self.response_builder.create_access_reject(request)

        username = request.get_string(ATTR_USER_NAME)
        logger.info(
            "RADIUS response",
            event=f"radius.auth.{decision.result}",
            code=CODE_NAMES.get(decision.code, decision.code),
            client_ip=str(addr[0] if isinstance(addr, tuple) else addr),
            username=username,
            vlan=decision.vlan,
            reason=decision.reason,
        )
        return response, decision

    def handle(self, request: RADIUSPacket, addr: Any) -> RADIUSPacket | None:
        """Full decision for a decoded request; ``None`` means drop."""
        if not self.is_permitted(addr):
            return None
        response, _decision = self.respond(request, addr)
        return response


def handle_auth_request(server, data: bytes, addr: tuple[str, int]):
    """Process an incoming Access-Request datagram."""
    client_ip, client_port = addr
    ctx_token = bind_context(
        correlation_id=str(uuid.uuid4()),
        client_ip=client_ip,
        service="radius",
    )
    try:
        handler: AccessRequestHandler = server.request_handler
        if not handler.is_permitted(addr):
            server._inc("dropped_requests")
            record_drop("unlisted")
            return

        secret = server.secret_provider.fetch_secret(addr)

        if not verify_message_authenticator(data, secret):
            logger.warning(
                "RADIUS auth request with invalid Message-Authenticator",
                event="radius.auth.bad_message_authenticator",
                client_ip=client_ip,
            )
            server._inc("invalid_packets")
            record_drop("bad_message_authenticator")
            return

        try:
            request = RADIUSPacket.unpack(data, secret)
        except ProtocolError as e:
            logger.warning(
                "Invalid RADIUS packet",
                event="radius.packet.invalid",
                client_ip=client_ip,
                error=str(e),
            )
            server._inc("invalid_packets")
            record_drop("invalid_packet")
            return

        if request.code != RADIUS_ACCESS_REQUEST:
            logger.warning(
                "Unexpected packet code in auth port",
                event="radius.auth.unexpected_code",
                code=request.code,
            )
            server._inc("invalid_packets")
            record_drop("invalid_packet")
            return

        server._inc("auth_requests")
        logger.debug(
            "RADIUS request",
            event="radius.request",
            identifier=request.identifier,
            client={"ip": client_ip, "port": client_port},
            attributes=len(request.attributes),
        )

        response, decision = handler.respond(request, addr)
        if decision.result == RESULT_REJECT:
            server._inc("auth_rejects")
        else:
            server._inc("auth_accepts")
            if decision.result == RESULT_FALLBACK_ACCEPT:
                server._inc("fallback_accepts")
        record_decision(decision.result)

        try:
            send_response(
                server.auth_socket, response, addr, secret, request.authenticator
            )
        except OSError as e:
            logger.error(
                "Error sending RADIUS response",
                event="radius.response.send_error",
                address=str(addr),
                error=str(e),
            )

    except Exception as e:
        logger.error(
            "Error handling RADIUS auth request",
            event="radius.auth.unhandled_error",
            client_ip=client_ip,
            error=str(e),
            exc_info=True,
        )
        server._inc("invalid_packets")
    finally:
        clear_context(ctx_token)


__all__ = [
    "AccessDecision",
    "AccessRequestHandler",
    "Credentials",
    "extract_credentials",
    "handle_auth_request",
]
