# main.py
import argparse
import asyncio
import logging
from aiohttp import web
from grocery_pos.api import create_app
from grocery_pos.config import Config, setup_logging
from grocery_pos.database.database import create_database
from grocery_pos.models.user import Role
from grocery_pos.services.billing import BillingServices
from grocery_pos.utils.security import generate_staff_token

async def serve():
    logger = logging.getLogger(__name__)
    if not Config.SECRET_KEY:
        raise ValueError("No SECRET_KEY set in environment")
    if not Config.DATABASE_URL:
        raise ValueError("No DATABASE_URL set in environment")

    db = create_database()
    await db.connect()
    services = BillingServices(db)

    runner = web.AppRunner(create_app(db, services))
    await runner.setup()
    site = web.TCPSite(runner, Config.API_HOST, Config.API_PORT)

    bot = None
    try:
        await site.start()
        logger.info(f"API listening on http://{Config.API_HOST}:{Config.API_PORT}")

        if Config.TELEGRAM_TOKEN:
            from grocery_pos.bot import PosBot
            bot = PosBot(services)
            await bot.start()

        await asyncio.Event().wait()
    finally:
        if bot:
            await bot.stop()
        await runner.cleanup()
        await db.close()

def main():
    parser = argparse.ArgumentParser(description="Grocery POS billing service")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("serve", help="run the REST API (and the cashier bot if configured)")
    token = sub.add_parser("token", help="print a signed staff token")
    token.add_argument("user_id", type=int)
    token.add_argument("role", help="Viewer, Grocery Keeper or Admin")
    args = parser.parse_args()

    if args.command == "token":
        role = Role.parse(args.role)
        if role is None:
            parser.error(f"unknown role: {args.role}")
        print(generate_staff_token(args.user_id, role))
        return

    # Setup logging
    setup_logging()
    logger = logging.getLogger(__name__)

    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("Shutting down")
    except Exception as e:
        logger.error(f"Error starting service: {e}", exc_info=True)
        raise

if __name__ == "__main__":
    main()
