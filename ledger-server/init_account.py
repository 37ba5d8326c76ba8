"""
Provision ledger accounts for local runs.

    python init_account.py A1 --balance 100.00
"""
import argparse
import asyncio
import logging
from decimal import Decimal

from app.infrastructure.database import dispose_engine, get_session_factory, init_db
from app.infrastructure.database.repositories import SqlAccountRepository

logger = logging.getLogger("init_account")


async def create_account(account_id: str, balance: Decimal) -> None:
    await init_db()
    repository = SqlAccountRepository(get_session_factory())
    try:
        if await repository.exists(account_id):
            logger.info("Account %s already exists", account_id)
            return
        await repository.create_account(account_id, balance)
        logger.info("Account %s created with balance %s", account_id, balance)
    finally:
        await dispose_engine()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a ledger account")
    parser.add_argument("account_id")
    parser.add_argument("--balance", type=Decimal, default=Decimal("0.00"), help="opening balance")
    return parser.parse_args()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    args = parse_args()
    asyncio.run(create_account(args.account_id, args.balance))
