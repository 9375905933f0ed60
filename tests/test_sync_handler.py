"""
Unit tests for the reminder sync handler: the per-template schedule state machine.
"""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from planwise.core.reminders.sync_handler import ReminderSyncHandler, SyncOutcome
from planwise.core.schedule.errors import ScheduleRepositoryError, ScheduleTaskNotFoundError
from planwise.core.schedule.memory_repository import InMemoryScheduleRepository
from planwise.core.schedule.models import ScheduleTaskRef, ScheduleTaskStatus
from tests.factories import (
    ACCOUNT_UUID,
    created,
    deleted,
    make_template,
    updated,
    with_reminder,
    with_time,
)


def _setup():
    repo = InMemoryScheduleRepository()
    return repo, ReminderSyncHandler(repo)


def _refs(repo, template):
    return asyncio.run(repo.find_by_source("task", template.uuid))


def test_created_with_reminder_creates_one_enabled_task():
    repo, handler = _setup()
    template = make_template(title="Morning Exercise", times=["08:00"], minutes_before=30)
    assert asyncio.run(handler.handle(created(template))) == SyncOutcome.CREATED

    refs = _refs(repo, template)
    assert len(refs) == 1
    ref = refs[0]
    assert ref.cron_expression == "0 30 7 * * *"
    assert ref.enabled is True
    assert ref.status == ScheduleTaskStatus.ACTIVE
    assert ref.trigger_type.value == "cron"
    assert ref.source_module == "task"
    assert ref.source_entity_id == template.uuid
    assert ref.name == "[Task reminder] Morning Exercise"
    assert ref.metadata["accountUuid"] == ACCOUNT_UUID
    assert ref.metadata["templateTitle"] == "Morning Exercise"
    assert ref.metadata["reminderConfig"]["minutesBefore"] == 30
    assert ref.metadata["timeConfig"]["times"] == ["08:00"]


def test_created_without_reminder_makes_no_repository_calls():
    repo, handler = _setup()
    template = make_template(enabled=False)
    assert asyncio.run(handler.handle(created(template))) == SyncOutcome.SKIPPED
    assert repo.calls == []
    assert repo.all() == []


def test_created_with_underivable_time_is_skipped(caplog):
    repo, handler = _setup()
    template = make_template(type="yearly")
    with caplog.at_level("WARNING"):
        assert asyncio.run(handler.handle(created(template))) == SyncOutcome.SKIPPED
    assert repo.calls == []
    assert "Cannot derive reminder cron" in caplog.text


def test_redelivered_created_does_not_duplicate():
    repo, handler = _setup()
    template = make_template()
    asyncio.run(handler.handle(created(template)))
    assert asyncio.run(handler.handle(created(template))) == SyncOutcome.SKIPPED
    assert len(_refs(repo, template)) == 1
    assert [op for op, _ in repo.calls].count("update_task") == 0


def test_redelivered_created_keeps_disabled_reminder_paused():
    repo, handler = _setup()
    template = make_template()
    asyncio.run(handler.handle(created(template)))
    asyncio.run(handler.handle(updated(with_reminder(template, enabled=False))))

    assert asyncio.run(handler.handle(created(template))) == SyncOutcome.SKIPPED
    ref = _refs(repo, template)[0]
    assert ref.enabled is False
    assert ref.status == ScheduleTaskStatus.PAUSED


def test_redelivered_created_keeps_newer_cron():
    repo, handler = _setup()
    template = make_template(times=["08:00"])
    asyncio.run(handler.handle(created(template)))
    asyncio.run(handler.handle(updated(with_time(template, times=["10:00"]))))

    assert asyncio.run(handler.handle(created(template))) == SyncOutcome.SKIPPED
    assert _refs(repo, template)[0].cron_expression == "0 30 9 * * *"


def test_redelivered_created_with_duplicate_refs_warns(caplog):
    repo, handler = _setup()
    template = make_template(times=["08:00"])
    repo.seed(_legacy_ref(template, minutes_ago=10))
    repo.seed(_legacy_ref(template, minutes_ago=5))

    with caplog.at_level("WARNING"):
        assert asyncio.run(handler.handle(created(template))) == SyncOutcome.SKIPPED
    assert "has 2 schedule tasks" in caplog.text
    assert handler.metrics.get_stats()["duplicate_refs"] == 1


def test_disable_then_enable_keeps_single_task():
    repo, handler = _setup()
    template = make_template(title="Toggle Reminder Test", times=["09:00"], minutes_before=15)
    asyncio.run(handler.handle(created(template)))
    first = _refs(repo, template)[0]

    disabled = with_reminder(template, enabled=False)
    assert asyncio.run(handler.handle(updated(disabled))) == SyncOutcome.DISABLED
    refs = _refs(repo, template)
    assert len(refs) == 1
    assert refs[0].uuid == first.uuid
    assert refs[0].enabled is False
    assert refs[0].status == ScheduleTaskStatus.PAUSED
    assert refs[0].cron_expression == "0 45 8 * * *"

    assert asyncio.run(handler.handle(updated(template))) == SyncOutcome.UPDATED
    refs = _refs(repo, template)
    assert len(refs) == 1
    assert refs[0].uuid == first.uuid
    assert refs[0].enabled is True
    assert refs[0].status == ScheduleTaskStatus.ACTIVE


def test_update_reminder_offset_changes_cron():
    repo, handler = _setup()
    template = make_template(title="Update Reminder Time Test", times=["10:00"], minutes_before=30)
    asyncio.run(handler.handle(created(template)))
    assert _refs(repo, template)[0].cron_expression == "0 30 9 * * *"

    asyncio.run(handler.handle(updated(with_reminder(template, minutes_before=60))))
    ref = _refs(repo, template)[0]
    assert ref.cron_expression == "0 0 9 * * *"
    assert ref.metadata["reminderConfig"]["minutesBefore"] == 60


def test_update_title_refreshes_name_and_metadata():
    repo, handler = _setup()
    template = make_template(title="Old")
    asyncio.run(handler.handle(created(template)))
    asyncio.run(handler.handle(updated(template.model_copy(update={"title": "New"}))))
    ref = _refs(repo, template)[0]
    assert ref.name == "[Task reminder] New"
    assert ref.description == 'Reminder for task "New"'
    assert ref.metadata["templateTitle"] == "New"


def test_update_with_underivable_time_keeps_existing_cron():
    repo, handler = _setup()
    template = make_template(times=["08:00"])
    asyncio.run(handler.handle(created(template)))

    broken = with_time(template, type="yearly")
    assert asyncio.run(handler.handle(updated(broken))) == SyncOutcome.UPDATED
    ref = _refs(repo, template)[0]
    assert ref.cron_expression == "0 30 7 * * *"
    assert ref.enabled is True
    assert ref.metadata["timeConfig"]["type"] == "yearly"


def test_update_without_task_self_heals():
    repo, handler = _setup()
    template = make_template()
    assert asyncio.run(handler.handle(updated(template))) == SyncOutcome.CREATED
    assert len(_refs(repo, template)) == 1


def test_update_without_task_and_reminder_disabled_is_noop():
    repo, handler = _setup()
    template = make_template(enabled=False)
    assert asyncio.run(handler.handle(updated(template))) == SyncOutcome.SKIPPED
    assert repo.all() == []
    assert [op for op, _ in repo.calls] == ["find_by_source"]


def test_delete_cascades_to_schedule_tasks():
    repo, handler = _setup()
    template = make_template()
    asyncio.run(handler.handle(created(template)))
    asyncio.run(handler.handle(updated(with_reminder(template, enabled=False))))
    assert asyncio.run(handler.handle(deleted(template))) == SyncOutcome.DELETED
    assert _refs(repo, template) == []


def test_delete_without_tasks_is_safe():
    repo, handler = _setup()
    template = make_template()
    assert asyncio.run(handler.handle(deleted(template))) == SyncOutcome.SKIPPED
    assert asyncio.run(handler.handle(deleted(template))) == SyncOutcome.SKIPPED


def _legacy_ref(template, minutes_ago, cron="0 0 6 * * *"):
    at = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
    return ScheduleTaskRef(
        uuid=f"legacy-{minutes_ago}",
        name="legacy",
        cron_expression=cron,
        enabled=True,
        status=ScheduleTaskStatus.ACTIVE,
        source_module="task",
        source_entity_id=template.uuid,
        created_at=at,
        updated_at=at,
    )


def test_duplicate_refs_use_first_and_delete_removes_all(caplog):
    repo, handler = _setup()
    template = make_template(times=["08:00"])
    repo.seed(_legacy_ref(template, minutes_ago=10))
    repo.seed(_legacy_ref(template, minutes_ago=5))

    with caplog.at_level("WARNING"):
        assert asyncio.run(handler.handle(updated(template))) == SyncOutcome.UPDATED
    assert "has 2 schedule tasks" in caplog.text
    refs = _refs(repo, template)
    assert refs[0].uuid == "legacy-10"
    assert refs[0].cron_expression == "0 30 7 * * *"
    assert refs[1].cron_expression == "0 0 6 * * *"
    assert handler.metrics.get_stats()["duplicate_refs"] == 1

    asyncio.run(handler.handle(deleted(template)))
    assert _refs(repo, template) == []


class _FailingRepository(InMemoryScheduleRepository):
    def __init__(self, fail_on):
        super().__init__()
        self.fail_on = fail_on

    async def create_task(self, spec):
        if self.fail_on == "create_task":
            raise ScheduleRepositoryError("store unavailable")
        return await super().create_task(spec)

    async def update_task(self, uuid, patch):
        if self.fail_on == "update_task":
            raise ScheduleRepositoryError("store unavailable")
        return await super().update_task(uuid, patch)


def test_create_failure_propagates_and_leaves_no_schedule():
    repo = _FailingRepository("create_task")
    handler = ReminderSyncHandler(repo)
    template = make_template()
    with pytest.raises(ScheduleRepositoryError, match="unavailable"):
        asyncio.run(handler.handle(created(template)))
    assert repo.all() == []
    assert handler.metrics.get_stats()["failures"] == {"template.created": 1}

    # Redelivery after the store recovers converges to one task
    repo.fail_on = None
    assert asyncio.run(handler.handle(created(template))) == SyncOutcome.CREATED
    assert len(_refs(repo, template)) == 1


def test_update_failure_propagates():
    repo = _FailingRepository(None)
    handler = ReminderSyncHandler(repo)
    template = make_template()
    asyncio.run(handler.handle(created(template)))
    repo.fail_on = "update_task"
    with pytest.raises(ScheduleRepositoryError):
        asyncio.run(handler.handle(updated(with_reminder(template, enabled=False))))
    assert _refs(repo, template)[0].enabled is True


def test_delete_tolerates_task_removed_concurrently():
    class _VanishingRepository(InMemoryScheduleRepository):
        async def delete_task(self, uuid):
            await super().delete_task(uuid)
            raise ScheduleTaskNotFoundError(uuid)

    repo = _VanishingRepository()
    handler = ReminderSyncHandler(repo)
    template = make_template()
    asyncio.run(handler.handle(created(template)))
    assert asyncio.run(handler.handle(deleted(template))) == SyncOutcome.DELETED


def test_custom_source_module():
    repo = InMemoryScheduleRepository()
    handler = ReminderSyncHandler(repo, source_module="goal")
    template = make_template()
    asyncio.run(handler.handle(created(template)))
    assert asyncio.run(repo.find_by_source("task", template.uuid)) == []
    assert len(asyncio.run(repo.find_by_source("goal", template.uuid))) == 1


def test_unknown_event_type_rejected():
    _, handler = _setup()
    with pytest.raises(TypeError, match="Unsupported"):
        asyncio.run(handler.handle(object()))


def test_out_of_range_weekday_is_skipped_not_retried(caplog):
    repo, handler = _setup()
    template = with_time(make_template(type="weekly"), weekdays=[9])
    with caplog.at_level("WARNING"):
        assert asyncio.run(handler.handle(created(template))) == SyncOutcome.SKIPPED
    assert repo.calls == []
    assert handler.metrics.get_stats()["failures"] == {}
