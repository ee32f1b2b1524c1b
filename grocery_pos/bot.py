# grocery_pos/bot.py
import logging
from telegram.ext import Application, CommandHandler
from .config import Config
from .handlers import OrderHandler
from .services.billing import BillingServices

class PosBot:
    def __init__(self, services: BillingServices):
        """Set up the cashier bot"""
        self.application = Application.builder().token(Config.TELEGRAM_TOKEN).build()
        self.order_handler = OrderHandler(services)
        self.logger = logging.getLogger(__name__)
        self.setup_handlers()

    def setup_handlers(self):
        """Register command handlers"""
        self.application.add_handler(CommandHandler("start", self.order_handler.help))
        self.application.add_handler(CommandHandler("help", self.order_handler.help))

        # billing
        self.application.add_handler(CommandHandler("neworder", self.order_handler.new_order))
        self.application.add_handler(CommandHandler("order", self.order_handler.show_order))
        self.application.add_handler(CommandHandler("pay", self.order_handler.pay))
        self.application.add_handler(CommandHandler("invoice", self.order_handler.invoice))
        self.application.add_handler(CommandHandler("cancel", self.order_handler.cancel))

    async def start(self):
        await self.application.initialize()
        await self.application.start()
        await self.application.updater.start_polling()
        self.logger.info("Cashier bot polling")

    async def stop(self):
        await self.application.updater.stop()
        await self.application.stop()
        await self.application.shutdown()
