# grocery_pos/handlers/base_handler.py
from telegram import Update
from ..config import Config
from ..models.user import Role, StaffIdentity
from ..services.billing import BillingServices
from ..utils.messages import Messages

class BaseHandler:
    """Base class for cashier bot handlers"""
    def __init__(self, services: BillingServices):
        self.services = services
        self.messages = Messages()

    @staticmethod
    def role_for(user_id: int) -> Role:
        """Map a Telegram id to a staff role"""
        if user_id in Config.ADMIN_IDS:
            return Role.ADMIN
        if user_id in Config.KEEPER_IDS:
            return Role.GROCERY_KEEPER
        return Role.VIEWER

    def identity_for(self, update: Update) -> StaffIdentity:
        user_id = update.effective_user.id
        return StaffIdentity(user_id=user_id, role=self.role_for(user_id))
