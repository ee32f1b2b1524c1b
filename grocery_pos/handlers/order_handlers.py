# grocery_pos/handlers/order_handlers.py
import logging
import re
from typing import Any, Awaitable, Callable, Dict, List
from telegram import Update
from telegram.ext import ContextTypes
from .base_handler import BaseHandler
from ..errors import BillingError, InvalidRequest
from ..models.order import LineRequest
from ..models.user import Role, StaffIdentity
from ..utils.security import require_role

logger = logging.getLogger(__name__)

LINE_PATTERN = re.compile(r"^(?P<item_id>\d+)x(?P<qty>\d+(?:\.\d+)?)(?:@(?P<price>\d+(?:\.\d+)?))?$")
FLAGS = {'-d': 'discount_amount', '-t': 'tax_percent', '-c': 'customer_id'}


def parse_new_order_args(args: List[str]) -> Dict[str, Any]:
    """Parse `/neworder 3x2 5x1@30 -d 10 -t 5 -c 7` into create_order arguments"""
    parsed: Dict[str, Any] = {'items': []}
    tokens = iter(args)
    for token in tokens:
        if token in FLAGS:
            value = next(tokens, None)
            if value is None:
                raise InvalidRequest(f"{token} needs a value.")
            parsed[FLAGS[token]] = value
            continue

        match = LINE_PATTERN.match(token)
        if not match:
            raise InvalidRequest(f"Can't read line '{token}', use <item_id>x<qty>[@price].")
        parsed['items'].append(LineRequest(
            item_id=int(match['item_id']),
            qty=match['qty'],
            unit_price=match['price'],
        ))

    if 'customer_id' in parsed:
        if not parsed['customer_id'].isdigit():
            raise InvalidRequest("customer id must be a number.")
        parsed['customer_id'] = int(parsed['customer_id'])
    return parsed


def _order_id_arg(args: List[str]) -> int:
    if not args or not args[0].lstrip('#').isdigit():
        raise InvalidRequest("Order id is required.")
    return int(args[0].lstrip('#'))


class OrderHandler(BaseHandler):
    """Billing commands for cashiers"""

    async def _run(self, update: Update, required: Role,
                   action: Callable[[StaffIdentity], Awaitable[str]]):
        try:
            identity = require_role(self.identity_for(update), required)
            reply = await action(identity)
        except BillingError as e:
            reply = f"❌ {e}"
        await update.message.reply_text(reply)

    async def help(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handler for /start and /help"""
        role = self.role_for(update.effective_user.id)
        await update.message.reply_text(self.messages.help_text(role))

    async def new_order(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        async def action(identity: StaffIdentity) -> str:
            parsed = parse_new_order_args(context.args or [])
            receipt = await self.services.orders.create_order(
                cashier_id=identity.user_id, **parsed
            )
            return self.messages.order_created(receipt.order_id, receipt.total_amount)

        await self._run(update, Role.GROCERY_KEEPER, action)

    async def show_order(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        async def action(identity: StaffIdentity) -> str:
            details = await self.services.orders.get_order(_order_id_arg(context.args))
            return self.messages.format_order(details)

        await self._run(update, Role.GROCERY_KEEPER, action)

    async def pay(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        async def action(identity: StaffIdentity) -> str:
            args = context.args or []
            if len(args) < 3:
                raise InvalidRequest("Usage: /pay <id> <method> <amount> [txn_ref]")
            result = await self.services.payments.add_payment(
                _order_id_arg(args),
                method=args[1],
                amount=args[2],
                txn_ref=args[3] if len(args) > 3 else None,
                generate_invoice=True,
            )
            return self.messages.payment_result(result)

        await self._run(update, Role.GROCERY_KEEPER, action)

    async def invoice(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        async def action(identity: StaffIdentity) -> str:
            order_id = _order_id_arg(context.args)
            invoice_number = await self.services.invoices.issue_invoice(order_id)
            return f"📄 Invoice for order #{order_id}: {invoice_number}"

        await self._run(update, Role.GROCERY_KEEPER, action)

    async def cancel(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        async def action(identity: StaffIdentity) -> str:
            result = await self.services.cancellations.cancel_order(_order_id_arg(context.args))
            logger.info(f"Order {result.order_id} cancelled via bot by {identity.user_id}")
            return self.messages.cancellation(result)

        await self._run(update, Role.ADMIN, action)
