# grocery_pos/utils/messages.py
from ..models.order import CancellationResult, OrderDetails, OrderStatus, PaymentResult
from ..models.user import Role
from ..utils.formatters import format_datetime, format_price, format_quantity

class Messages:
    @staticmethod
    def format_order(details: OrderDetails) -> str:
        """Order summary for the cashier chat"""
        order = details.order
        status_emoji = {
            OrderStatus.DRAFT: "📝",
            OrderStatus.PAID: "✅",
            OrderStatus.CANCELLED: "❌",
        }

        items_text = "\n".join([
            f"- {format_quantity(line.qty)}x {line.item_name_snapshot} @ "
            f"{format_price(line.unit_price)} = {format_price(line.line_total)}"
            for line in details.items
        ])
        payments_text = "\n".join([
            f"- {p.method.value}: {format_price(p.amount)}" + (f" ({p.txn_ref})" if p.txn_ref else "")
            for p in details.payments
        ]) or "- none"
        due = order.total_amount - details.paid_total

        text = (
            f"🧾 Order #{order.order_id}\n"
            f"------------------\n"
            f"{items_text}\n"
            f"------------------\n"
            f"Subtotal: {format_price(order.subtotal)}\n"
            f"Discount: {format_price(order.discount_amount)}\n"
            f"Tax: {format_price(order.tax_amount)}\n"
            f"💰 Total: {format_price(order.total_amount)}\n"
            f"Payments:\n{payments_text}\n"
            f"Due: {format_price(due)}\n"
            f"📊 Status: {status_emoji[order.status]} {order.status.value}\n"
            f"🕒 Created: {format_datetime(order.created_at)}\n"
        )
        if details.invoice_number:
            text += f"📄 Invoice: {details.invoice_number}\n"
        return text

    @staticmethod
    def order_created(order_id: int, total_amount) -> str:
        return f"📝 Order #{order_id} created (DRAFT). Total: {format_price(total_amount)}"

    @staticmethod
    def payment_result(result: PaymentResult) -> str:
        if not result.settled:
            return (
                f"💳 Payment added (partial) to order #{result.order_id}.\n"
                f"Paid: {format_price(result.paid)}\n"
                f"Due: {format_price(result.due)}"
            )

        text = (
            f"✅ Order #{result.order_id} paid in full.\n"
            f"Paid: {format_price(result.paid)}\n"
        )
        if result.due < 0:
            text += f"Change due: {format_price(-result.due)}\n"
        if result.invoice_number:
            text += f"📄 Invoice: {result.invoice_number}\n"
        return text

    @staticmethod
    def cancellation(result: CancellationResult) -> str:
        if result.previous_status == OrderStatus.CANCELLED:
            return f"Order #{result.order_id} was already cancelled."
        text = f"❌ Order #{result.order_id} cancelled."
        if result.stock_restored:
            text += " Stock restored."
        return text

    @staticmethod
    def help_text(role: Role) -> str:
        lines = [f"👤 Role: {role.label}"]
        if role >= Role.GROCERY_KEEPER:
            lines += [
                "/neworder <item>x<qty>[@price] ... [-d discount] [-t tax%] [-c customer]",
                "/order <id>",
                "/pay <id> <CASH|CARD|UPI|WALLET> <amount> [txn_ref]",
                "/invoice <id>",
            ]
        if role >= Role.ADMIN:
            lines.append("/cancel <id>")
        if role < Role.GROCERY_KEEPER:
            lines.append("You can't use billing commands.")
        return "\n".join(lines)
