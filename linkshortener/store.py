"""Record stores for links and their owners.

Thin wrappers over an ``AsyncSession`` that keep SQLAlchemy details out of
the service layer and translate driver failures into service errors:

- unique-index violations become :class:`DuplicateKey`;
- any other DBAPI/connection failure becomes :class:`StoreUnavailable`.

Counters (``links.clicks``, ``users.link_count``) are only ever changed with
single-statement ``UPDATE ... SET col = col + n`` so concurrent requests
cannot lose increments.
"""

import functools

from prometheus_client import Counter
from sqlalchemy import func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from linkshortener.errors import DuplicateKey, StoreUnavailable
from linkshortener.models import Link, User

__all__ = ["LinkStore", "UserStore"]

DATABASE_READS_TOTAL = Counter(
    "link_shortener_database_reads_total",
    "Total database read operations",
)
DATABASE_WRITES_TOTAL = Counter(
    "link_shortener_database_writes_total",
    "Total database write operations",
)


def _translate_errors(method):
    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except IntegrityError as exc:
            await self._db.rollback()
            raise DuplicateKey(str(exc.orig)) from exc
        except DBAPIError as exc:
            await self._db.rollback()
            raise StoreUnavailable(str(exc.orig)) from exc

    return wrapper


class LinkStore:
    def __init__(self, db: AsyncSession):
        self._db = db

    @_translate_errors
    async def insert(self, link: Link) -> Link:
        self._db.add(link)
        await self._db.commit()
        DATABASE_WRITES_TOTAL.inc()
        await self._db.refresh(link)
        return link

    @_translate_errors
    async def find_by_identifier(self, url_id: str) -> Link | None:
        result = await self._db.execute(select(Link).where(Link.url_id == url_id))
        DATABASE_READS_TOTAL.inc()
        return result.scalar_one_or_none()

    @_translate_errors
    async def find_by_owned_identifier(self, url_id: str, owner_id: int) -> Link | None:
        result = await self._db.execute(
            select(Link).where(Link.url_id == url_id, Link.owner_id == owner_id)
        )
        DATABASE_READS_TOTAL.inc()
        return result.scalar_one_or_none()

    @_translate_errors
    async def find_by_id(self, link_id: int) -> Link | None:
        link = await self._db.get(Link, link_id)
        DATABASE_READS_TOTAL.inc()
        return link

    @_translate_errors
    async def find_by_owner(self, owner_id: int, page: int = 1, page_size: int | None = None) -> list[Link]:
        statement = (
            select(Link)
            .where(Link.owner_id == owner_id)
            .order_by(Link.created_at.desc(), Link.id.desc())
        )
        if page_size is not None:
            statement = statement.offset((page - 1) * page_size).limit(page_size)
        result = await self._db.execute(statement)
        DATABASE_READS_TOTAL.inc()
        return list(result.scalars().all())

    @_translate_errors
    async def count_by_owner(self, owner_id: int) -> int:
        result = await self._db.execute(select(func.count(Link.id)).where(Link.owner_id == owner_id))
        DATABASE_READS_TOTAL.inc()
        return result.scalar_one()

    @_translate_errors
    async def list_all(self, page: int, page_size: int) -> list[Link]:
        result = await self._db.execute(
            select(Link)
            .order_by(Link.created_at.desc(), Link.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        DATABASE_READS_TOTAL.inc()
        return list(result.scalars().all())

    @_translate_errors
    async def count_all(self) -> int:
        result = await self._db.execute(select(func.count(Link.id)))
        DATABASE_READS_TOTAL.inc()
        return result.scalar_one()

    @_translate_errors
    async def is_taken(self, url_id: str) -> bool:
        result = await self._db.execute(select(Link.id).where(Link.url_id == url_id).limit(1))
        DATABASE_READS_TOTAL.inc()
        return result.first() is not None

    @_translate_errors
    async def update(self, link: Link) -> Link:
        self._db.add(link)
        await self._db.commit()
        DATABASE_WRITES_TOTAL.inc()
        await self._db.refresh(link)
        return link

    @_translate_errors
    async def delete(self, link: Link) -> None:
        await self._db.delete(link)
        await self._db.commit()
        DATABASE_WRITES_TOTAL.inc()

    @_translate_errors
    async def increment_clicks(self, link_id: int) -> bool:
        result = await self._db.execute(
            update(Link)
            .where(Link.id == link_id)
            .values(clicks=Link.clicks + 1, last_accessed_at=func.now())
            .execution_options(synchronize_session=False)
        )
        await self._db.commit()
        DATABASE_WRITES_TOTAL.inc()
        return result.rowcount > 0


class UserStore:
    def __init__(self, db: AsyncSession):
        self._db = db

    @_translate_errors
    async def get(self, user_id: int) -> User | None:
        user = await self._db.get(User, user_id)
        DATABASE_READS_TOTAL.inc()
        return user

    @_translate_errors
    async def save(self, user: User) -> User:
        self._db.add(user)
        await self._db.commit()
        DATABASE_WRITES_TOTAL.inc()
        await self._db.refresh(user)
        return user

    @_translate_errors
    async def adjust_link_count(self, user_id: int, delta: int) -> bool:
        statement = update(User).where(User.id == user_id)
        if delta < 0:
            statement = statement.where(User.link_count + delta >= 0)
        result = await self._db.execute(
            statement.values(link_count=User.link_count + delta).execution_options(synchronize_session=False)
        )
        await self._db.commit()
        DATABASE_WRITES_TOTAL.inc()
        return result.rowcount > 0
