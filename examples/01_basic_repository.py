"""
Example 01: Basic Repository

This example demonstrates registering an entity, CRUD and fluent queries
against the in-memory store.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from doc_query import StoreConfig, collection, get_repository, initialize


@collection("users")
@dataclass
class User:
    """User entity"""
    id: Optional[str] = None
    name: str = ""
    city: str = ""
    age: int = 0
    created_at: Optional[datetime] = None


async def main():
    initialize(StoreConfig(driver="memory"))
    users = get_repository(User)

    print("=== Basic Repository ===\n")

    # create: the store generates the id
    ann = await users.create(User(name="Ann", city="Leeds", age=34, created_at=datetime.now(timezone.utc)))
    await users.create(User(name="Bob", city="York", age=27))
    await users.create({"name": "Cat", "city": "Leeds", "age": 41})
    print(f"Created: {ann}\n")

    # find_by_id: None when absent
    print(f"find_by_id: {await users.find_by_id(ann.id)}")
    print(f"find_by_id('missing'): {await users.find_by_id('missing')}\n")

    # Fluent queries
    leeds = await users.where_equal_to("city", "Leeds").order_by_descending("age").find()
    print(f"Leeds, oldest first ({len(leeds)}):")
    for user in leeds:
        print(f"  - {user.name} ({user.age})")
    print()

    youngest = await users.order_by_ascending(lambda u: u.age).find_one()
    print(f"Youngest: {youngest.name}\n")

    # update and delete
    ann.city = "Hull"
    await users.update(ann)
    print(f"After update: {await users.find_by_id(ann.id)}")
    await users.delete(ann.id)
    print(f"After delete: {await users.find_by_id(ann.id)}")


if __name__ == "__main__":
    asyncio.run(main())
