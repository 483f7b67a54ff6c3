"""
Example 03: Transactions

This example demonstrates run_transaction: reads and writes made through
transaction repositories are committed together, or not at all.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from doc_query import StoreConfig, collection, get_repository, initialize, run_transaction


@collection("accounts")
@dataclass
class Account:
    """Account entity"""
    id: Optional[str] = None
    owner: str = ""
    balance: int = 0


def transfer(source_id, target_id, amount):
    async def body(tx):
        accounts = tx.get_repository(Account)
        source = await accounts.find_by_id(source_id)
        target = await accounts.find_by_id(target_id)
        if source.balance < amount:
            raise ValueError(f"{source.owner} cannot pay {amount}")
        source.balance -= amount
        target.balance += amount
        await accounts.update(source)
        await accounts.update(target)

    return body


async def show(accounts):
    for account in await accounts.order_by_ascending("owner").find():
        print(f"  - {account.owner}: {account.balance}")
    print()


async def main():
    initialize(StoreConfig(driver="memory"))
    accounts = get_repository(Account)
    await accounts.create(Account(id="ann", owner="Ann", balance=100))
    await accounts.create(Account(id="bob", owner="Bob", balance=20))

    print("=== Transactions ===\n")

    await run_transaction(transfer("ann", "bob", 30))
    print("After committed transfer:")
    await show(accounts)

    try:
        await run_transaction(transfer("bob", "ann", 500))
    except ValueError as e:
        print(f"Rolled back: {e}")
    print("After failed transfer:")
    await show(accounts)


if __name__ == "__main__":
    asyncio.run(main())
