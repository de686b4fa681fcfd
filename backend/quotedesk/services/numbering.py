"""
Document number allocation

Numbers look like ``<PREFIX>/<COMPANY_CODE>/<YYMM>/<SEQ>`` (quotations carry
no prefix). The sequence restarts every calendar month of the issuing clock
and is derived from the last number issued in the same scope.

Allocation is serialized per scope with a lock held across
read -> insert -> commit, and the number columns are unique. A collision
that still slips through (another process, a lock that expired) rolls the
attempt back and retries with exponential backoff.
"""
import asyncio
import enum
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Awaitable, Callable, Dict, Optional

from loguru import logger
from redis.exceptions import LockNotOwnedError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.core.config import settings
from quotedesk.core.middleware import NumberAllocationExhausted
from quotedesk.crud.documents import DocumentStore


class DocumentType(str, enum.Enum):
    QUOTATION = "quotation"
    BILL = "bill"
    RECEIPT = "receipt"


DOCUMENT_PREFIXES = {
    DocumentType.QUOTATION: None,
    DocumentType.BILL: "INV",
    DocumentType.RECEIPT: "RCP",
}

SEQUENCE_WIDTH = 4


def scope_prefix(document_type: DocumentType, scope_code: str, now: datetime) -> str:
    """Everything before the sequence, trailing slash included"""
    parts = [DOCUMENT_PREFIXES[DocumentType(document_type)], scope_code, now.strftime("%y%m")]
    return "/".join(p for p in parts if p) + "/"


def parse_sequence(number: str) -> int:
    """Sequence of an issued number; 0 when the last segment is not numeric"""
    tail = number.rsplit("/", 1)[-1]
    try:
        return int(tail)
    except ValueError:
        logger.warning(f"Unparseable document number {number!r}, restarting sequence")
        return 0


def next_number(
    document_type: DocumentType,
    scope_code: str,
    last_issued: Optional[str],
    now: datetime,
) -> str:
    """
    Next number in the scope of ``now``

    ``last_issued`` must be the most recent number already issued under the
    same scope prefix, or None when the scope is empty.
    """
    prefix = scope_prefix(document_type, scope_code, now)
    sequence = parse_sequence(last_issued) + 1 if last_issued else 1
    return f"{prefix}{sequence:0{SEQUENCE_WIDTH}d}"


# ===== Scope locks =====

class ScopeLockTimeout(Exception):
    """The scope lock could not be taken in time"""

    def __init__(self, scope: str):
        super().__init__(f"Timed out waiting for the number lock of scope {scope}")
        self.scope = scope


class LocalScopeLocks:
    """asyncio locks keyed by scope, valid inside one process"""

    def __init__(self):
        # key -> [lock, holders and waiters]
        self._locks: Dict[tuple, list] = {}

    @asynccontextmanager
    async def hold(self, scope: str):
        # asyncio locks belong to one event loop
        key = (id(asyncio.get_running_loop()), scope)
        entry = self._locks.setdefault(key, [asyncio.Lock(), 0])
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]


class RedisScopeLocks:
    """Redis locks keyed by scope, shared by every worker"""

    def __init__(self, timeout: int = None):
        self.timeout = timeout or settings.NUMBER_LOCK_TIMEOUT_SECONDS

    @asynccontextmanager
    async def hold(self, scope: str):
        from quotedesk.core.redis_client import get_redis

        redis = await get_redis()
        lock = redis.lock(f"docnum:{scope}", timeout=self.timeout, blocking_timeout=self.timeout)
        if not await lock.acquire():
            raise ScopeLockTimeout(scope)
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockNotOwnedError:
                # expired while held; the unique number column still guards the insert
                logger.warning(f"Number lock for scope {scope} expired before release")


def build_scope_locks(backend: str = None):
    backend = backend or settings.NUMBER_LOCK_BACKEND
    if backend == "redis":
        return RedisScopeLocks()
    if backend == "local":
        return LocalScopeLocks()
    raise ValueError(f"Unknown number lock backend: {backend}")


# ===== Allocator =====

class DocumentNumberAllocator:
    """Issues numbers and persists the document that carries them"""

    def __init__(
        self,
        locks=None,
        max_attempts: int = None,
        backoff_seconds: float = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.locks = locks or build_scope_locks()
        self.max_attempts = max_attempts or settings.NUMBER_ALLOCATION_MAX_ATTEMPTS
        self.backoff_seconds = (
            settings.NUMBER_ALLOCATION_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        )
        self.clock = clock

    async def issue(
        self,
        db: AsyncSession,
        document_type: DocumentType,
        scope_code: str,
        build: Callable[[str], Awaitable[object]],
    ):
        """
        Allocate a number and commit the document built for it

        ``build(number)`` adds the document (and anything that belongs with
        it) to the session and returns it; it is called again with a fresh
        number on every retry, after the previous attempt was rolled back.
        """
        document_type = DocumentType(document_type)
        column = DocumentStore.number_column(document_type)
        scope = None

        for attempt in range(1, self.max_attempts + 1):
            now = self.clock()
            scope = scope_prefix(document_type, scope_code, now)

            try:
                async with self.locks.hold(scope):
                    last_issued = await DocumentStore.find_last_document_number(db, document_type, scope)
                    number = next_number(document_type, scope_code, last_issued, now)
                    try:
                        document = await build(number)
                        await db.commit()
                    except IntegrityError as e:
                        await db.rollback()
                        # only a clash on the number column is retried
                        if column.name not in str(e.orig):
                            raise
                        logger.warning(
                            f"Document number {number} already taken "
                            f"(attempt {attempt}/{self.max_attempts})"
                        )
                    else:
                        logger.info(f"Issued {document_type.value} number {number}")
                        return document
            except ScopeLockTimeout as e:
                logger.warning(f"{e} (attempt {attempt}/{self.max_attempts})")

            if attempt < self.max_attempts:
                await asyncio.sleep(self.backoff_seconds * (2 ** (attempt - 1)))

        logger.error(f"Gave up allocating a number in scope {scope}")
        raise NumberAllocationExhausted(scope, self.max_attempts)


document_number_allocator = DocumentNumberAllocator()
