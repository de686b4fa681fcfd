"""
Document numbering tests
"""
import asyncio
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import LockNotOwnedError

from quotedesk.core.middleware import NumberAllocationExhausted
from quotedesk.crud.documents import DocumentStore
from quotedesk.schemas.quotation import QuotationCreateRequest
from quotedesk.services.numbering import (
    DocumentNumberAllocator, DocumentType, LocalScopeLocks, RedisScopeLocks, ScopeLockTimeout,
    build_scope_locks, next_number, parse_sequence, scope_prefix,
)
from quotedesk.services.quotation_service import QuotationService

FIXED_NOW = datetime(2025, 1, 15, 10, 30)


def quotation_request(client_id: int) -> QuotationCreateRequest:
    return QuotationCreateRequest(
        client_id=client_id,
        total_sqft=Decimal("1000"),
        rate_per_sqft=Decimal("100"),
    )


class TestNumberFormat:
    """Pure number derivation"""

    def test_scope_prefix_per_type(self):
        now = datetime(2025, 1, 5)
        assert scope_prefix(DocumentType.QUOTATION, "AARTI", now) == "AARTI/2501/"
        assert scope_prefix(DocumentType.BILL, "AARTI", now) == "INV/AARTI/2501/"
        assert scope_prefix(DocumentType.RECEIPT, "AARTI", now) == "RCP/AARTI/2501/"

    def test_first_number_in_scope(self):
        assert next_number(DocumentType.QUOTATION, "AARTI", None, datetime(2025, 1, 5)) == "AARTI/2501/0001"

    def test_increments_last_issued(self):
        number = next_number(DocumentType.BILL, "AARTI", "INV/AARTI/2501/0041", datetime(2025, 1, 20))
        assert number == "INV/AARTI/2501/0042"

    def test_sequence_grows_past_padding(self):
        number = next_number(DocumentType.RECEIPT, "AARTI", "RCP/AARTI/2501/9999", datetime(2025, 1, 20))
        assert number == "RCP/AARTI/2501/10000"

    def test_unparseable_tail_restarts(self):
        assert parse_sequence("AARTI/2501/abc") == 0
        assert next_number(DocumentType.QUOTATION, "AARTI", "AARTI/2501/abc", datetime(2025, 1, 5)) == "AARTI/2501/0001"

    def test_build_scope_locks(self):
        assert isinstance(build_scope_locks("local"), LocalScopeLocks)
        assert isinstance(build_scope_locks("redis"), RedisScopeLocks)
        with pytest.raises(ValueError):
            build_scope_locks("zookeeper")


class TestAllocation:
    """Allocation against the database"""

    @pytest.mark.asyncio
    async def test_sequential_numbers(self, db_session, user, client_record, allocator):
        """Consecutive quotations get consecutive numbers"""
        service = QuotationService(allocator)

        first = await service.create_quotation(db_session, user, quotation_request(client_record.id))
        second = await service.create_quotation(db_session, user, quotation_request(client_record.id))

        assert first.quotation_number == "AARTI/2501/0001"
        assert second.quotation_number == "AARTI/2501/0002"

    @pytest.mark.asyncio
    async def test_month_rollover_restarts_sequence(self, db_session, user, client_record):
        months = iter([datetime(2025, 1, 31, 23, 59), datetime(2025, 2, 1, 0, 1)])
        service = QuotationService(DocumentNumberAllocator(
            LocalScopeLocks(), backoff_seconds=0, clock=lambda: next(months)
        ))

        january = await service.create_quotation(db_session, user, quotation_request(client_record.id))
        february = await service.create_quotation(db_session, user, quotation_request(client_record.id))

        assert january.quotation_number == "AARTI/2501/0001"
        assert february.quotation_number == "AARTI/2502/0001"

    @pytest.mark.asyncio
    async def test_scopes_are_per_company(self, db_session, user, other_company, client_record, allocator):
        """Another company's numbers do not advance ours"""
        last = await DocumentStore.find_last_document_number(db_session, "quotation", "OTHER/2501/")
        assert last is None

        service = QuotationService(allocator)
        created = await service.create_quotation(db_session, user, quotation_request(client_record.id))
        assert created.quotation_number.startswith("AARTI/")
        assert await DocumentStore.find_last_document_number(db_session, "quotation", "OTHER/2501/") is None

    @pytest.mark.asyncio
    async def test_concurrent_creations_get_distinct_numbers(self, session_factory, user, client_record, allocator):
        """Parallel creations with separate sessions never share a number"""
        service = QuotationService(allocator)

        async def create_one():
            async with session_factory() as session:
                result = await service.create_quotation(session, user, quotation_request(client_record.id))
                return result.quotation_number

        numbers = await asyncio.gather(*[create_one() for _ in range(8)])

        assert len(set(numbers)) == 8
        assert sorted(numbers) == [f"AARTI/2501/{i:04d}" for i in range(1, 9)]

    @pytest.mark.asyncio
    async def test_collision_is_retried(self, db_session, user, client_record, allocator):
        """A stale read that collides on the unique number is retried"""
        service = QuotationService(allocator)
        await service.create_quotation(db_session, user, quotation_request(client_record.id))

        real_find_last = DocumentStore.find_last_document_number
        calls = {"count": 0}

        async def stale_then_real(db, document_type, prefix):
            calls["count"] += 1
            if calls["count"] == 1:
                return None
            return await real_find_last(db, document_type, prefix)

        with patch.object(DocumentStore, "find_last_document_number", side_effect=stale_then_real):
            created = await service.create_quotation(db_session, user, quotation_request(client_record.id))

        assert calls["count"] == 2
        assert created.quotation_number == "AARTI/2501/0002"

    @pytest.mark.asyncio
    async def test_exhausted_attempts(self, db_session, user, client_record):
        """Every attempt colliding ends in NumberAllocationExhausted"""
        allocator = DocumentNumberAllocator(
            LocalScopeLocks(), max_attempts=3, backoff_seconds=0, clock=lambda: FIXED_NOW
        )
        service = QuotationService(allocator)
        await service.create_quotation(db_session, user, quotation_request(client_record.id))

        async def always_stale(db, document_type, prefix):
            return None

        with patch.object(DocumentStore, "find_last_document_number", side_effect=always_stale):
            with pytest.raises(NumberAllocationExhausted) as exc_info:
                await service.create_quotation(db_session, user, quotation_request(client_record.id))

        assert exc_info.value.status_code == 503
        assert exc_info.value.details["attempts"] == 3

    @pytest.mark.asyncio
    async def test_local_locks_are_released_when_unused(self):
        locks = LocalScopeLocks()

        async with locks.hold("AARTI/2501/"):
            async with locks.hold("INV/AARTI/2501/"):
                assert len(locks._locks) == 2
            assert len(locks._locks) == 1

        assert locks._locks == {}

    @pytest.mark.asyncio
    async def test_local_lock_kept_while_waiters_remain(self):
        locks = LocalScopeLocks()
        order = []

        async def worker(name):
            async with locks.hold("AARTI/2501/"):
                order.append(name)
                await asyncio.sleep(0)

        await asyncio.gather(worker("a"), worker("b"), worker("c"))

        assert order == ["a", "b", "c"]
        assert locks._locks == {}


def fake_redis(acquired=True):
    lock = MagicMock()
    lock.acquire = AsyncMock(return_value=acquired)
    lock.release = AsyncMock(return_value=None)
    redis = MagicMock()
    redis.lock.return_value = lock

    async def fake_get_redis():
        return redis

    return redis, lock, fake_get_redis


class TestRedisLocks:
    """Redis backed scope locks"""

    @pytest.mark.asyncio
    async def test_lock_is_keyed_by_scope(self):
        """The Redis backend locks docnum:<scope>"""
        redis, lock, fake_get_redis = fake_redis()

        with patch("quotedesk.core.redis_client.get_redis", new=fake_get_redis):
            async with RedisScopeLocks(timeout=7).hold("INV/AARTI/2501/"):
                pass

        redis.lock.assert_called_once_with("docnum:INV/AARTI/2501/", timeout=7, blocking_timeout=7)
        lock.acquire.assert_awaited_once()
        lock.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_lock_timeout_raises(self):
        _redis, lock, fake_get_redis = fake_redis(acquired=False)

        with patch("quotedesk.core.redis_client.get_redis", new=fake_get_redis):
            with pytest.raises(ScopeLockTimeout):
                async with RedisScopeLocks(timeout=1).hold("AARTI/2501/"):
                    pass

        lock.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expired_lock_release_is_tolerated(self):
        _redis, lock, fake_get_redis = fake_redis()
        lock.release.side_effect = LockNotOwnedError("Cannot release a lock that's no longer owned")

        with patch("quotedesk.core.redis_client.get_redis", new=fake_get_redis):
            async with RedisScopeLocks(timeout=1).hold("AARTI/2501/"):
                pass

        lock.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_lock_timeouts_exhaust_allocation(self, db_session, user, client_record):
        """Every attempt timing out on the lock ends in a 503 and nothing is written"""
        _redis, lock, fake_get_redis = fake_redis(acquired=False)
        allocator = DocumentNumberAllocator(
            RedisScopeLocks(timeout=1), max_attempts=3, backoff_seconds=0, clock=lambda: FIXED_NOW
        )
        service = QuotationService(allocator)

        with patch("quotedesk.core.redis_client.get_redis", new=fake_get_redis):
            with pytest.raises(NumberAllocationExhausted) as exc_info:
                await service.create_quotation(db_session, user, quotation_request(client_record.id))

        assert exc_info.value.status_code == 503
        assert lock.acquire.await_count == 3
        assert await service.list_quotations(db_session, user) == []

    @pytest.mark.asyncio
    async def test_lock_timeout_then_success(self, db_session, user, client_record):
        _redis, lock, fake_get_redis = fake_redis()
        lock.acquire.side_effect = [False, True]
        allocator = DocumentNumberAllocator(
            RedisScopeLocks(timeout=1), max_attempts=3, backoff_seconds=0, clock=lambda: FIXED_NOW
        )
        service = QuotationService(allocator)

        with patch("quotedesk.core.redis_client.get_redis", new=fake_get_redis):
            created = await service.create_quotation(db_session, user, quotation_request(client_record.id))

        assert created.quotation_number == "AARTI/2501/0001"
        assert lock.acquire.await_count == 2
