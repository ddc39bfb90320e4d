import asyncio

import pytest
from sqlalchemy import func, select

from api.app.domain import ConflictError, NotFound, ValidationError
from api.app.models import Table
from api.app.repos_sqlalchemy import TablesRepoSQL
from api.app.services import TableRegistry, validate_batch
from api.app.utils.soft_delete import is_deleted


async def _table_count(factory) -> int:
    async with factory() as session:
        return (await session.execute(select(func.count(Table.id)))).scalar_one()


def test_validate_batch_normalizes():
    assert validate_batch([" a1", "b2 ", "C3"]) == ["A1", "B2", "C3"]


@pytest.mark.parametrize(
    "batch,key",
    [
        (["A1", "A-2", "TOOLONGNAME1"], "invalid"),
        (["A1", "a1", "B2"], "duplicates"),
    ],
)
def test_validate_batch_reports_offenders(batch, key):
    with pytest.raises(ValidationError) as exc:
        validate_batch(batch)
    assert exc.value.details[key]


def test_validate_batch_rejects_empty_and_oversized():
    with pytest.raises(ValidationError):
        validate_batch([])
    with pytest.raises(ValidationError) as exc:
        validate_batch([f"T{i}" for i in range(101)])
    assert exc.value.details == {"limit": 100, "received": 101}


@pytest.mark.anyio
async def test_create_new_tables(session, seeded):
    registry = TableRegistry()
    result = await registry.create_or_restore(session, seeded.tenant.id, ["c1", "D4"])
    assert result.created == ["C1", "D4"]
    assert result.restored == []
    assert [t.table_identifier for t in result.tables] == ["C1", "D4"]
    names = [t.table_identifier for t in await registry.list_tables(session, seeded.tenant.id)]
    assert names == ["A1", "B2", "C1", "D4"]


@pytest.mark.anyio
async def test_recreating_deleted_table_restores_its_id(session, seeded):
    registry = TableRegistry()
    original_id = seeded.a1.id
    deleted = await registry.soft_delete(session, seeded.tenant.id, original_id)
    assert is_deleted(deleted)
    assert "A1" not in [
        t.table_identifier for t in await registry.list_tables(session, seeded.tenant.id)
    ]

    result = await registry.create_or_restore(session, seeded.tenant.id, ["A1"])

    assert result.restored == ["A1"]
    assert result.created == []
    assert result.tables[0].id == original_id
    assert result.tables[0].deleted_at is None

    await registry.soft_delete(session, seeded.tenant.id, original_id)
    again = await registry.create_or_restore(session, seeded.tenant.id, [" a1"])
    assert again.restored == ["A1"]
    assert again.tables[0].id == original_id
    active = await registry.list_tables(session, seeded.tenant.id)
    assert [t.id for t in active if t.table_identifier == "A1"] == [original_id]


@pytest.mark.anyio
async def test_oversized_batch_writes_nothing(session_factory, session, seeded):
    before = await _table_count(session_factory)
    with pytest.raises(ValidationError):
        await TableRegistry().create_or_restore(
            session, seeded.tenant.id, [f"T{i}" for i in range(101)]
        )
    assert await _table_count(session_factory) == before


@pytest.mark.anyio
async def test_active_identifiers_conflict_as_a_batch(session_factory, session, seeded):
    before = await _table_count(session_factory)
    with pytest.raises(ConflictError) as exc:
        await TableRegistry().create_or_restore(session, seeded.tenant.id, ["Z1", "A1", "B2"])
    assert exc.value.details == {"conflicts": ["A1", "B2"]}
    assert "A1, B2" in exc.value.message
    assert await _table_count(session_factory) == before


@pytest.mark.anyio
async def test_identifiers_are_scoped_per_tenant(session, seeded):
    result = await TableRegistry().create_or_restore(session, seeded.other.id, ["B2"])
    assert result.created == ["B2"]


@pytest.mark.anyio
async def test_soft_delete_is_idempotent(session, seeded):
    registry = TableRegistry()
    first = await registry.soft_delete(session, seeded.tenant.id, seeded.b2.id)
    stamp = first.deleted_at
    second = await registry.soft_delete(session, seeded.tenant.id, seeded.b2.id)
    assert second.deleted_at == stamp


@pytest.mark.anyio
async def test_soft_delete_of_other_tenant_table_not_found(session, seeded):
    with pytest.raises(NotFound):
        await TableRegistry().soft_delete(session, seeded.other.id, seeded.a1.id)


@pytest.mark.anyio
async def test_hard_delete_refuses_tables_with_orders(session, seeded, service):
    order = await service.place_order(
        session, "1234", "A1", [{"item_id": seeded.burger.id, "quantity": 1}]
    )
    registry = TableRegistry()
    with pytest.raises(ConflictError):
        await registry.hard_delete(session, seeded.tenant.id, seeded.a1.id)

    await registry.soft_delete(session, seeded.tenant.id, seeded.a1.id)
    kept = await service.orders.get_order(session, seeded.tenant.id, order.id)
    assert kept.table_id == seeded.a1.id

    await registry.hard_delete(session, seeded.tenant.id, seeded.b2.id)
    assert await registry.repo.get(session, seeded.tenant.id, seeded.b2.id, include_deleted=True) is None


@pytest.mark.anyio
async def test_concurrent_restores_of_one_table_restore_it_once(
    session_factory, session, seeded, monkeypatch
):
    repo = TablesRepoSQL()
    original_id = seeded.a1.id
    await TableRegistry(repo=repo).soft_delete(session, seeded.tenant.id, original_id)

    real = repo.find_by_identifiers
    arrived = []
    both_read = asyncio.Event()

    async def held(*args, **kwargs):
        tables = await real(*args, **kwargs)
        arrived.append(1)
        if len(arrived) == 2:
            both_read.set()
        await both_read.wait()
        return tables

    monkeypatch.setattr(repo, "find_by_identifiers", held)

    async def restore():
        async with session_factory() as own:
            return await TableRegistry(repo=repo).create_or_restore(
                own, seeded.tenant.id, ["A1"]
            )

    outcomes = await asyncio.gather(restore(), restore(), return_exceptions=True)

    restored = [o for o in outcomes if not isinstance(o, Exception)]
    conflicts = [o for o in outcomes if isinstance(o, ConflictError)]
    assert len(restored) == 1 and len(conflicts) == 1
    assert restored[0].restored == ["A1"]
    assert restored[0].tables[0].id == original_id
    assert conflicts[0].details == {"conflicts": ["A1"]}

    async with session_factory() as fresh:
        rows = (
            await fresh.execute(
                select(Table).where(
                    Table.tenant_id == seeded.tenant.id, Table.table_identifier == "A1"
                )
            )
        ).scalars().all()
    assert [(t.id, t.deleted_at) for t in rows] == [(original_id, None)]


@pytest.mark.anyio
async def test_restore_of_active_table_is_refused(session, seeded):
    repo = TablesRepoSQL()
    assert await repo.restore(session, seeded.a1) is False
    await session.rollback()

    deleted = await repo.soft_delete(session, seeded.tenant.id, seeded.b2.id)
    assert await repo.restore(session, deleted) is True
    await session.commit()
    assert deleted.deleted_at is None
