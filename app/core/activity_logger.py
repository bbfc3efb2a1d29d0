"""
Activity logging utility for audit trail.
Records who changed the shared directory and how.
"""
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)
activity_logger = logging.getLogger("app.activity")


def log_activity(
    action_type: str,
    request=None,
    details: Optional[Dict[str, Any]] = None
):
    """
    Log an activity to the activity log.

    Args:
        action_type: Type of action (e.g., 'FILE_UPLOAD', 'FILE_DELETE')
        request: Incoming request, used for the client address and user agent
        details: Additional context (e.g. the filenames affected)
    """
    try:
        activity_logger.info(
            f"{action_type} from {get_client_ip(request) or 'unknown'} "
            f"({get_user_agent(request) or 'unknown'}): {details or {}}"
        )
    except Exception as e:
        # Logging failure shouldn't break the main operation
        logger.error(f"Error logging activity: {str(e)}")


def get_client_ip(request) -> Optional[str]:
    """
    Extract client IP address from a FastAPI request or websocket.
    Handles proxies and forwarded headers.
    """
    if not request:
        return None

    # Check for forwarded IP (from proxy/load balancer)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if hasattr(request, "client") and request.client:
        return request.client.host

    return None


def get_user_agent(request) -> Optional[str]:
    """Extract user agent from FastAPI request."""
    if not request:
        return None
    return request.headers.get("User-Agent")
