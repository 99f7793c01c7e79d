"""
Basic example of batching relations with berrybatch, Strawberry and SQLAlchemy.

Runs one GraphQL query against an in-memory SQLite database and prints the
result together with the SQL statements it took: one per relation, however
many parents there are.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional

import strawberry
from sqlalchemy import DateTime, ForeignKey, Integer, String, event, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from strawberry.types import Info

from berrybatch import ChildLoader, Page, SingleLoader, select_in
from berrybatch.sqla import context_lock


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = 'users'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))


class Post(Base):
    __tablename__ = 'posts'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    author_id: Mapped[int] = mapped_column(ForeignKey('users.id'))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


posts_by_author = ChildLoader(select_in(Post, 'author_id', order_by=Post.created_at), 'author_id')
user_by_id = SingleLoader(select_in(User, 'id'))


@strawberry.type
class PostType:
    id: int
    title: str
    author_id: int

    @strawberry.field
    async def author(self, info: Info) -> Optional["UserType"]:
        return await user_by_id.load_one(info, self.author_id)


@strawberry.type
class UserType:
    id: int
    name: str

    @strawberry.field
    async def posts(self, info: Info, skip: int = 0, limit: Optional[int] = None) -> List[PostType]:
        return await posts_by_author.load_many(info, self.id, skip=skip, limit=limit)

    @strawberry.field
    async def posts_page(self, info: Info, page: Optional[int] = None, per_page: Optional[int] = None) -> Page[PostType]:
        return await posts_by_author.load_page(info, self.id, page=page, per_page=per_page)


@strawberry.type
class Query:
    @strawberry.field
    async def users(self, info: Info) -> List[UserType]:
        async with context_lock(info):
            result = await info.context['db_session'].execute(select(User).order_by(User.id))
            return list(result.scalars().all())


schema = strawberry.Schema(query=Query)

QUERY = """
{
  users {
    name
    posts(limit: 2) { title author { name } }
    postsPage(page: 2, perPage: 2) {
      items { title }
      pageInfo { currentPage pageCount hasNextPage }
    }
  }
}
"""


async def main():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    statements = []
    event.listen(engine.sync_engine, "before_cursor_execute",
                 lambda conn, cursor, statement, *args: statements.append(statement))

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        users = [User(name=name) for name in ("Alice", "Bob", "Charlie")]
        session.add_all(users)
        await session.flush()
        for user in users:
            session.add_all(Post(title=f"{user.name} #{n}", author_id=user.id) for n in range(1, 5))
        await session.commit()

        statements.clear()
        result = await schema.execute(QUERY, context_value={'db_session': session})
        if result.errors:
            for error in result.errors:
                print(f"Error: {error.message}")
        print(result.data)
        print(f"{len(statements)} SQL statements")

    await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
