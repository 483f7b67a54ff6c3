"""
Example 04: Custom Repository

This example demonstrates binding a repository subclass with domain queries
to an entity, and pydantic validation on create.
"""

import asyncio
from typing import Optional

from pydantic import BaseModel, Field

from doc_query import (
    Repository,
    StoreConfig,
    ValidationFailure,
    collection,
    custom_repository,
    get_repository,
    initialize,
)


@collection("products")
class Product(BaseModel):
    """Product entity"""
    id: Optional[str] = None
    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    tags: list[str] = []


@custom_repository(Product)
class ProductRepository(Repository[Product]):
    """Repository for Product entities"""

    async def cheaper_than(self, price):
        return await self.where_less_than("price", price).order_by_ascending("price").find()

    async def tagged(self, tag):
        return await self.where_array_contains("tags", tag).find()


async def main():
    initialize(StoreConfig(driver="memory"))
    products = get_repository(Product)

    print("=== Custom Repository ===\n")
    print(f"Repository type: {type(products).__name__}\n")

    await products.create(Product(name="Kettle", price=25.0, tags=["kitchen"]))
    await products.create(Product(name="Lamp", price=40.0, tags=["home"]))
    await products.create(Product(name="Mug", price=8.5, tags=["kitchen", "gift"]))

    print("Cheaper than 30:")
    for product in await products.cheaper_than(30):
        print(f"  - {product.name}: {product.price}")
    print()

    print(f"Kitchen: {[p.name for p in await products.tagged('kitchen')]}\n")

    try:
        await products.create({"name": "", "price": -1})
    except ValidationFailure as e:
        print(f"Validation failed: {[v.field for v in e.violations]}")


if __name__ == "__main__":
    asyncio.run(main())
