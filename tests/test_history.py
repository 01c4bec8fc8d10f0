import csv
import io
from datetime import datetime, timedelta, timezone

from quickpe.modules.transactions import HistoryFilters, TransactionHistoryService
from quickpe.modules.transactions.service import STATEMENT_HEADER


def _history(container, max_page_size=100):
    session = container.session_factory()
    return session, TransactionHistoryService.with_session(session, max_page_size)


async def test_history_is_newest_first_and_paginated(container, make_member):
    alice = await make_member("Alice", 100_000)
    bob = await make_member("Bob", 0)
    for amount in (1_000, 2_000, 3_000):
        await container.transfer_service.transfer(alice.id, bob.id, amount)

    session, service = _history(container)
    async with session:
        first = await service.list_history(alice.account_id, page=1, page_size=2)
        second = await service.list_history(alice.account_id, page=2, page_size=2)

    assert [record.amount_paise for record in first.records] == [3_000, 2_000]
    assert [record.amount_paise for record in second.records] == [1_000]
    assert (first.total, first.total_pages, first.has_next, first.has_prev) == (3, 2, True, False)
    assert (second.has_next, second.has_prev) == (False, True)
    assert first.records[0].counterparty.name == "Bob Tester"
    assert first.records[0].counterparty.quickpe_id == bob.user.quickpe_id


async def test_history_filters_by_type_and_search(container, make_member):
    alice = await make_member("Alice", 50_000)
    bob = await make_member("Bob", 50_000)
    await container.transfer_service.transfer(alice.id, bob.id, 1_000, description="Rent share")
    await container.transfer_service.transfer(bob.id, alice.id, 500, description="Coffee")

    session, service = _history(container)
    async with session:
        credits = await service.list_history(alice.account_id, filters=HistoryFilters(type="credit"))
        rent = await service.list_history(alice.account_id, filters=HistoryFilters(search="rent"))

    assert [(record.type, record.description) for record in credits.records] == [("credit", "Coffee")]
    assert [record.description for record in rent.records] == ["Rent share"]


async def test_page_size_is_clamped(container, make_member):
    alice = await make_member("Alice", 10_000)

    session, service = _history(container, max_page_size=5)
    async with session:
        page = await service.list_history(alice.account_id, page=0, page_size=500)

    assert (page.page, page.page_size, page.total, page.total_pages) == (1, 5, 0, 0)


def test_date_presets_resolve_against_now():
    now = datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)

    start, end = HistoryFilters(date_preset="today").date_range(now)
    assert start == datetime(2026, 10, 19, tzinfo=timezone.utc)
    assert end == start + timedelta(days=1)

    start, _ = HistoryFilters(date_preset="month").date_range(now)
    assert start == datetime(2026, 10, 1, tzinfo=timezone.utc)

    start, _ = HistoryFilters(date_preset="3months").date_range(now)
    assert start == now - timedelta(days=90)

    explicit = datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert HistoryFilters(date_preset="week", start=explicit).date_range(now) == (explicit, None)


async def test_csv_statement(container, make_member):
    alice = await make_member("Alice", 50_000)
    bob = await make_member("Bob", 0)
    result = await container.transfer_service.transfer(alice.id, bob.id, 12_345, description="Tickets")

    session, service = _history(container)
    async with session:
        content = await service.export_csv(alice.account_id)

    rows = list(csv.reader(io.StringIO(content)))
    assert tuple(rows[0]) == STATEMENT_HEADER
    assert len(rows) == 2
    row = dict(zip(STATEMENT_HEADER, rows[1]))
    assert row["Transaction ID"] == result.transaction_id
    assert row["Type"] == "debit"
    assert row["Counterparty"] == "Bob Tester"
    assert row["Amount (INR)"] == "123.45"
    assert row["Balance After (INR)"] == "376.55"


def test_explicit_dates_are_normalised_to_utc():
    ist = timezone(timedelta(hours=5, minutes=30))

    start, end = HistoryFilters(
        start=datetime(2026, 10, 19, 9, 0, tzinfo=ist),
        end=datetime(2026, 10, 19, 12, 0),
    ).date_range(datetime(2026, 10, 19, tzinfo=timezone.utc))

    assert start == datetime(2026, 10, 19, 3, 30, tzinfo=timezone.utc)
    assert start.utcoffset() == timedelta(0)
    assert end == datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


async def test_offset_date_filters_match_utc_ledger(container, make_member):
    alice = await make_member("Alice", 50_000)
    bob = await make_member("Bob", 0)
    await container.transfer_service.transfer(alice.id, bob.id, 1_000)
    ist = timezone(timedelta(hours=5, minutes=30))
    local_now = datetime.now(ist)

    session, service = _history(container)
    async with session:
        since = await service.list_history(
            alice.account_id, filters=HistoryFilters(start=local_now - timedelta(minutes=5))
        )
        window = await service.list_history(
            alice.account_id,
            filters=HistoryFilters(start=local_now - timedelta(minutes=5), end=local_now + timedelta(minutes=5)),
        )
        before = await service.list_history(
            alice.account_id, filters=HistoryFilters(end=local_now - timedelta(minutes=5))
        )
        naive = await service.list_history(
            alice.account_id,
            filters=HistoryFilters(start=datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(minutes=5)),
        )

    assert (since.total, window.total, before.total, naive.total) == (1, 1, 0, 1)


async def test_api_date_filter_accepts_offsets(client, container, make_member):
    alice = await make_member("Alice", 50_000)
    bob = await make_member("Bob", 0)
    await container.transfer_service.transfer(alice.id, bob.id, 1_000)
    start = (datetime.now(timezone(timedelta(hours=5, minutes=30))) - timedelta(minutes=5)).isoformat()

    response = await client.get("/api/v1/account/transactions", params={"start_date": start}, headers=alice.headers)

    assert response.status_code == 200
    assert response.json()["pagination"]["total"] == 1


async def test_csv_statement_includes_every_row(container, make_member, monkeypatch):
    monkeypatch.setattr("quickpe.modules.transactions.service.STATEMENT_PAGE_SIZE", 2)
    alice = await make_member("Alice", 50_000)
    bob = await make_member("Bob", 0)
    for amount in range(100, 600, 100):
        await container.transfer_service.transfer(alice.id, bob.id, amount)

    session, service = _history(container)
    async with session:
        content = await service.export_csv(alice.account_id)

    rows = list(csv.reader(io.StringIO(content)))[1:]
    assert len(rows) == 5
    assert [row[STATEMENT_HEADER.index("Amount (INR)")] for row in rows] == ["5.00", "4.00", "3.00", "2.00", "1.00"]
    assert len({row[1] for row in rows}) == 5
