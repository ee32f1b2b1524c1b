# grocery_pos/utils/security.py
import hashlib
import hmac
import logging
import time
from typing import Optional
from ..config import Config
from ..errors import AccessDenied
from ..models.user import Role, StaffIdentity

logger = logging.getLogger(__name__)

def _sign(message: str, secret: str) -> str:
    return hmac.new(
        secret.encode(),
        message.encode(),
        hashlib.sha256
    ).hexdigest()

def generate_staff_token(user_id: int, role: Role, secret: Optional[str] = None,
                         issued_at: Optional[int] = None) -> str:
    """Issue a signed staff token: user_id:ROLE:issued_at:signature"""
    secret = secret or Config.SECRET_KEY
    if not secret:
        raise ValueError("No SECRET_KEY set in environment")

    timestamp = int(time.time()) if issued_at is None else issued_at
    message = f"{user_id}:{role.name}:{timestamp}"
    return f"{message}:{_sign(message, secret)}"

def verify_staff_token(token: str, secret: Optional[str] = None,
                       ttl: Optional[int] = None) -> Optional[StaffIdentity]:
    """Check a staff token and return who it belongs to, or None"""
    secret = secret or Config.SECRET_KEY
    ttl = Config.TOKEN_TTL if ttl is None else ttl
    if not secret:
        return None

    try:
        message, signature = token.strip().rsplit(':', 1)
        user_id, role_name, timestamp = message.split(':')
        user_id = int(user_id)
        timestamp = int(timestamp)
    except ValueError:
        return None

    if not hmac.compare_digest(signature, _sign(message, secret)):
        return None

    if int(time.time()) - timestamp > ttl:
        logger.info(f"Expired staff token for user {user_id}")
        return None

    role = Role.parse(role_name)
    if role is None:
        return None

    return StaffIdentity(user_id=user_id, role=role)

def check_role(role: Role, required: Role) -> bool:
    """Allow when the caller's level is at least the required one"""
    return role >= required

def require_role(identity: StaffIdentity, required: Role) -> StaffIdentity:
    if not check_role(identity.role, required):
        logger.warning(
            f"User {identity.user_id} ({identity.role.label}) denied, requires {required.label}"
        )
        raise AccessDenied(identity.role.label)
    return identity
