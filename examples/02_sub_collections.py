"""
Example 02: Sub-collections

This example demonstrates nested collections. Every hydrated Post carries a
repository for its own comments under posts/<post id>/comments.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Optional

from doc_query import StoreConfig, collection, get_repository, initialize, sub_collection


@dataclass
class Comment:
    """Comment entity"""
    id: Optional[str] = None
    author: str = ""
    text: str = ""
    likes: int = 0


@collection("posts")
@sub_collection(Comment, "comments")
@dataclass
class Post:
    """Post entity"""
    id: Optional[str] = None
    title: str = ""
    comments: Any = None


async def main():
    initialize(StoreConfig(driver="memory"))
    posts = get_repository(Post)

    print("=== Sub-collections ===\n")

    post = await posts.create(Post(title="Hello, documents"))
    print(f"Post {post.id}: comments bound to {post.comments.path!r}\n")

    await post.comments.create(Comment(author="ann", text="First!", likes=1))
    await post.comments.create(Comment(author="bob", text="Nice post", likes=4))

    reloaded = await posts.find_by_id(post.id)
    top = await reloaded.comments.order_by_descending("likes").find_one()
    print(f"Most liked comment: {top.text} by {top.author}")

    # The same collection is reachable by literal path
    by_path = get_repository(f"posts/{post.id}/comments")
    print(f"Comments via literal path: {len(await by_path.find())}")


if __name__ == "__main__":
    asyncio.run(main())
