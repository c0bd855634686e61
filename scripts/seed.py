"""Development seeder: fills the blog through the real write paths."""
import argparse
import asyncio
import random
import time

from logos.database import Base, async_session, engine
from logos.schemas import CommentCreate, LinkCreate, PostCreate, PostUpdate
from logos.services import comment_service, link_service, post_service

TAGS = ["Python", "FastAPI", "PostgreSQL", "Redis", "Docker", "Testing",
        "Performance", "Security", "Rust", "Web", "DevOps", "测试"]

TITLES = ["Getting started with {}", "Why {} matters", "{} in production",
          "A week with {}", "Notes on {}"]

LINKS = [
    ("Python", "https://www.python.org", "The Python language"),
    ("SQLAlchemy", "https://www.sqlalchemy.org", None),
    ("FastAPI", "https://fastapi.tiangolo.com", "Web framework docs"),
]


async def seed(num_posts: int, reset: bool) -> None:
    print(f"Seeding {num_posts} posts (reset={reset})")
    start = time.perf_counter()

    if reset:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)

    comments = 0
    async with async_session() as session:
        for i in range(num_posts):
            topic = random.choice(TAGS)
            # Titles repeat on purpose so the slug suffixing is exercised.
            title = random.choice(TITLES).format(topic)
            content = "\n\n".join(
                f"Paragraph {n} of post {i} about {topic}." for n in range(1, 6)
            )
            created = await post_service.create_post(
                session,
                PostCreate(
                    title=title,
                    content=content,
                    tags=random.sample(TAGS, k=random.randint(1, 3)),
                    published=random.random() > 0.1,
                ),
            )
            if not created["published"]:
                continue
            for n in range(random.randint(0, 3)):
                comment = await comment_service.create_comment(
                    session,
                    created["id"],
                    CommentCreate(
                        nickname=f"reader{n}",
                        email=f"reader{n}@example.com",
                        content=f"Comment {n} on {created['slug']}",
                    ),
                )
                if random.random() > 0.5:
                    await comment_service.update_comment_status(session, comment["id"], "approved")
                comments += 1

        # One retitle so the update path is covered by a seeded database too.
        first = await post_service.list_posts(session, page_size=1, published_only=False)
        if first.items:
            await post_service.update_post(
                session, first.items[0]["id"], PostUpdate(title="Hello, World!")
            )

        for name, url, description in LINKS:
            await link_service.create_link(
                session, LinkCreate(name=name, url=url, description=description)
            )

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"Seeding complete in {elapsed:.1f}s: {num_posts} posts, {comments} comments")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--posts", type=int, default=50, help="Number of posts to create")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables first")
    args = parser.parse_args()
    asyncio.run(seed(args.posts, args.reset))


if __name__ == "__main__":
    main()
