"""Database seeder for local development of the blog API."""
import argparse
import asyncio
import random
import time
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from blogapi.config import Settings
from blogapi.database import Base, build_engine, build_session_factory
from blogapi.models import Blog, Comment, Like, User
from blogapi.security import hash_password

TOPICS = ["python", "fastapi", "postgresql", "docker", "kubernetes", "react",
          "typescript", "aws", "devops", "testing", "performance", "security"]

SEED_PASSWORD = "password123"


async def seed(small: bool = False):
    num_users = 10 if small else 50
    num_blogs = 100 if small else 5000
    max_comments = 2 if small else 5

    settings = Settings()
    engine = build_engine(settings)
    session_factory = build_session_factory(engine)

    print(f"Seeding: {num_users} users, {num_blogs} blogs (password for all users: {SEED_PASSWORD})")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    # One hash for everyone; bcrypt is deliberately slow.
    password = hash_password(SEED_PASSWORD)

    async with session_factory() as session:
        users = []
        for i in range(num_users):
            user = User(
                name=f"User {i:04d}",
                email=f"user_{i:04d}@example.com",
                password=password,
                bio=f"I am test user number {i}. I write about technology.",
            )
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"  Created {len(users)} users")

        batch_size = 500
        total_comments = 0
        total_likes = 0
        for batch_start in range(0, num_blogs, batch_size):
            batch_end = min(batch_start + batch_size, num_blogs)
            for i in range(batch_start, batch_end):
                topic = random.choice(TOPICS)
                session.add(Blog(
                    title=f"Blog {i}: Notes on {topic}",
                    content=f"This is the full content of blog {i} about {topic}. " * 20,
                    thumbnail="/uploads/placeholder.png",
                    created_at=datetime.now(timezone.utc) - timedelta(days=random.randint(0, 365)),
                    user_id=random.choice(users).id,
                ))
            await session.flush()

            result = await session.execute(
                select(Blog.id).order_by(Blog.id.desc()).limit(batch_end - batch_start)
            )
            for blog_id in result.scalars().all():
                for _ in range(random.randint(0, max_comments)):
                    session.add(Comment(
                        comment=f"Great post! Comment by {random.choice(users).name}.",
                        user_id=random.choice(users).id,
                        blog_id=blog_id,
                    ))
                    total_comments += 1
                # Distinct likers keep the (user_id, blog_id) pairs unique.
                for liker in random.sample(users, k=random.randint(0, min(5, len(users)))):
                    session.add(Like(user_id=liker.id, blog_id=blog_id))
                    total_likes += 1
            await session.flush()

            print(f"  Batch {batch_start}-{batch_end}: blogs created")

        await session.commit()

    await engine.dispose()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {num_users}")
    print(f"  Blogs: {num_blogs}")
    print(f"  Comments: {total_comments}")
    print(f"  Likes: {total_likes}")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (100 blogs)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
