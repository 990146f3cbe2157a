from decimal import Decimal

import pytest

from domain.payment.entity import PaymentLogEntry
from domain.payment.repository import PaymentLogWriteOutcome
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


def _entry(payment_id: str = "pay_1", status: str = "captured", order_id: str = "order_1") -> PaymentLogEntry:
    return PaymentLogEntry(
        id=None,
        payment_id=payment_id,
        order_id=order_id,
        amount=Decimal("500"),
        currency="INR",
        status=status,
    )


async def _record(database, entry: PaymentLogEntry) -> PaymentLogWriteOutcome:
    async with SQLAlchemyUnitOfWork(database.session_factory) as uow:
        return await uow.payment_log_repository.record_notification(entry)


@pytest.mark.asyncio
async def test_insert_then_mark_paid_then_noop(database):
    assert await _record(database, _entry()) == PaymentLogWriteOutcome.INSERTED
    assert await _record(database, _entry()) == PaymentLogWriteOutcome.MARKED_PAID
    assert await _record(database, _entry(status="authorized")) == PaymentLogWriteOutcome.ALREADY_PAID

    async with SQLAlchemyUnitOfWork(database.session_factory, readonly=True) as uow:
        entries = await uow.payment_log_repository.list_all()
    assert len(entries) == 1
    assert entries[0].status == "paid"


@pytest.mark.asyncio
async def test_list_ordered_by_order_id_desc(database):
    await _record(database, _entry(payment_id="pay_a", order_id="order_a"))
    await _record(database, _entry(payment_id="pay_c", order_id="order_c"))
    await _record(database, _entry(payment_id="pay_b", order_id="order_b"))

    async with SQLAlchemyUnitOfWork(database.session_factory, readonly=True) as uow:
        entries = await uow.payment_log_repository.list_all()
    assert [e.order_id for e in entries] == ["order_c", "order_b", "order_a"]
