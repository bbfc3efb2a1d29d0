import logging
import socket

logger = logging.getLogger(__name__)

LOOPBACK = "127.0.0.1"


def _is_lan_address(ip: str) -> bool:
    return not ip.startswith("127.") and not ip.startswith("169.254.") and ip != "0.0.0.0"


def get_local_ip() -> str:
    """
    Get the host's local network IPv4 address, or 127.0.0.1 if it has none.

    Used only for display and for the CORS allow-list; the server itself
    binds on all interfaces.
    """
    # Connecting a UDP socket sends nothing, it only picks the outgoing interface
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("10.255.255.255", 1))
            ip = s.getsockname()[0]
        if _is_lan_address(ip):
            return ip
    except OSError as e:
        logger.debug(f"No routed interface found: {e}")

    try:
        hostname = socket.gethostname()
        for ip in socket.gethostbyname_ex(hostname)[2]:
            if _is_lan_address(ip):
                return ip
    except OSError as e:
        logger.debug(f"Could not resolve host addresses: {e}")

    logger.warning("No local network address found, falling back to loopback")
    return LOOPBACK
