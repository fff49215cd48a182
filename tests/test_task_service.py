import threading

import pytest

from loyaltyapi.core.exceptions import (
    AlreadyCompletedError,
    AlreadyProcessedError,
    AlreadySubmittedError,
    CompletionNotFoundError,
    TaskNotEligibleError,
    TaskNotFoundError,
    WrongTaskTypeError,
)
from loyaltyapi.models.activity_log import ActivityLog
from loyaltyapi.models.task import CompletionStatus, Task, TaskStatus, TaskType
from loyaltyapi.schemas.task import TaskCreateRequest, TaskUpdateRequest
from loyaltyapi.services.point_service import PointService
from loyaltyapi.services.task_service import TaskService


@pytest.fixture
def task_service(db, settings, point_service):
    return TaskService(db, settings=settings, point_service=point_service)


@pytest.fixture
def create_task(db):
    def _create(
        title="Follow us",
        reward=100,
        task_type=TaskType.MANUAL,
        status=TaskStatus.ACTIVE,
        verification_url=None,
    ):
        task = Task(
            title=title,
            reward=reward,
            task_type=task_type.value,
            status=status.value,
            verification_url=verification_url,
        )
        db.add(task)
        db.commit()
        return task.id

    return _create


class TestManualTask:
    """증빙 제출 + 관리자 검수 흐름"""

    def test_submit_creates_pending_without_reward(
        self, task_service, create_user, create_task, balance_of, assert_ledger_invariant
    ):
        # Given
        user_id = create_user("alice")
        task_id = create_task(reward=100)

        # When
        completion = task_service.submit_manual_proof(user_id, task_id, "  https://x.com/p/1  ")

        # Then
        assert completion.status == CompletionStatus.PENDING.value
        assert completion.proof_data == "https://x.com/p/1"
        assert balance_of(user_id) == 0
        assert_ledger_invariant()

    def test_second_submission_is_rejected(self, task_service, create_user, create_task):
        user_id = create_user("alice")
        task_id = create_task()
        task_service.submit_manual_proof(user_id, task_id, "proof")

        with pytest.raises(AlreadySubmittedError):
            task_service.submit_manual_proof(user_id, task_id, "proof again")

    def test_submit_to_link_task_is_wrong_type(self, task_service, create_user, create_task):
        user_id = create_user("alice")
        task_id = create_task(task_type=TaskType.LINK_CLICK, verification_url="https://y")

        with pytest.raises(WrongTaskTypeError):
            task_service.submit_manual_proof(user_id, task_id, None)

    def test_submit_to_missing_task(self, task_service, create_user):
        user_id = create_user("alice")

        with pytest.raises(TaskNotFoundError):
            task_service.submit_manual_proof(user_id, 424242, "proof")

    def test_approve_pays_reward_once(
        self, task_service, db, create_user, create_task, balance_of, assert_ledger_invariant
    ):
        """승인 시 보상 지급 + 감사 로그, 두 번째 승인은 AlreadyProcessed"""
        # Given
        admin_id = create_user("admin")
        user_id = create_user("alice")
        task_id = create_task(title="Share post", reward=250)
        completion = task_service.submit_manual_proof(user_id, task_id, "proof")

        # When
        approved = task_service.approve_completion(completion.id, admin_id)

        # Then
        assert approved.status == CompletionStatus.APPROVED.value
        assert approved.processed_at is not None
        assert balance_of(user_id) == 250
        assert db.query(ActivityLog).count() == 1

        with pytest.raises(AlreadyProcessedError):
            task_service.approve_completion(completion.id, admin_id)
        assert balance_of(user_id) == 250
        assert_ledger_invariant()

    def test_concurrent_approvals_pay_once(
        self, task_service, db, session_factory, settings, notifier, create_user,
        create_task, balance_of, assert_ledger_invariant,
    ):
        """두 관리자가 같은 제출을 동시에 승인해도 보상은 한 번"""
        admins = [create_user("admin1"), create_user("admin2")]
        user_id = create_user("alice")
        task_id = create_task(reward=300)
        completion_id = task_service.submit_manual_proof(user_id, task_id, "proof").id
        db.rollback()
        approved, conflicts, errors = [], [], []

        def approve(admin_id):
            session = session_factory()
            try:
                service = TaskService(
                    session,
                    settings=settings,
                    point_service=PointService(session, settings=settings, notifier=notifier),
                )
                approved.append(service.approve_completion(completion_id, admin_id))
            except AlreadyProcessedError:
                conflicts.append(admin_id)
            except Exception as exc:  # pragma: no cover
                errors.append(exc)
            finally:
                session.close()

        threads = [threading.Thread(target=approve, args=(aid,)) for aid in admins]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert (len(approved), len(conflicts)) == (1, 1)
        assert balance_of(user_id) == 300
        assert_ledger_invariant()

    def test_rejected_cannot_be_approved(
        self, task_service, create_user, create_task, balance_of
    ):
        user_id = create_user("alice")
        task_id = create_task()
        completion = task_service.submit_manual_proof(user_id, task_id, "proof")

        rejected = task_service.reject_completion(completion.id, admin_id=1)

        assert rejected.status == CompletionStatus.REJECTED.value
        with pytest.raises(AlreadyProcessedError):
            task_service.approve_completion(completion.id, admin_id=1)
        assert balance_of(user_id) == 0

    def test_resubmit_after_rejection(self, task_service, create_user, create_task):
        """rejected 기록은 재제출을 막지 않음"""
        user_id = create_user("alice")
        task_id = create_task()
        first = task_service.submit_manual_proof(user_id, task_id, "blurry")
        task_service.reject_completion(first.id, admin_id=1)

        second = task_service.submit_manual_proof(user_id, task_id, "clear")

        assert second.id != first.id
        assert second.status == CompletionStatus.PENDING.value

    def test_approve_missing_completion(self, task_service):
        with pytest.raises(CompletionNotFoundError):
            task_service.approve_completion(98765, admin_id=1)

    def test_pending_list_oldest_first(self, task_service, create_user, create_task):
        alice = create_user("alice")
        bob = create_user("bob")
        task_id = create_task(title="Review")
        task_service.submit_manual_proof(alice, task_id, "a")
        task_service.submit_manual_proof(bob, task_id, "b")

        pending = task_service.list_pending_completions()

        assert [p.username for p in pending] == ["alice", "bob"]
        assert pending[0].task_title == "Review"


class TestLinkTask:
    """링크 클릭 자동 검증"""

    def test_first_click_awards_and_returns_url(
        self, task_service, notifier, create_user, create_task, balance_of,
        assert_ledger_invariant,
    ):
        # Given
        user_id = create_user("alice")
        task_id = create_task(
            reward=50, task_type=TaskType.LINK_CLICK, verification_url="https://example.com/promo"
        )

        # When
        url = task_service.auto_verify_link_task(user_id, task_id)

        # Then
        assert url == "https://example.com/promo"
        assert balance_of(user_id) == 50
        notifier.publish.assert_called_once()
        assert_ledger_invariant()

    def test_second_click_raises_with_url(
        self, task_service, create_user, create_task, balance_of
    ):
        user_id = create_user("alice")
        task_id = create_task(
            reward=50, task_type=TaskType.LINK_CLICK, verification_url="https://example.com/promo"
        )
        task_service.auto_verify_link_task(user_id, task_id)

        with pytest.raises(AlreadyCompletedError) as exc_info:
            task_service.auto_verify_link_task(user_id, task_id)

        assert exc_info.value.redirect_url == "https://example.com/promo"
        assert balance_of(user_id) == 50

    @pytest.mark.parametrize(
        "task_type,status",
        [
            (TaskType.MANUAL, TaskStatus.ACTIVE),
            (TaskType.LINK_CLICK, TaskStatus.INACTIVE),
        ],
    )
    def test_not_eligible(self, task_service, create_user, create_task, task_type, status):
        user_id = create_user("alice")
        task_id = create_task(task_type=task_type, status=status, verification_url="https://z")

        with pytest.raises(TaskNotEligibleError):
            task_service.auto_verify_link_task(user_id, task_id)

    def test_missing_task_not_eligible(self, task_service, create_user):
        user_id = create_user("alice")

        with pytest.raises(TaskNotEligibleError):
            task_service.auto_verify_link_task(user_id, 5555)

    def test_user_task_list_marks_completed(self, task_service, create_user, create_task):
        user_id = create_user("alice")
        done = create_task(title="Done", task_type=TaskType.LINK_CLICK, verification_url="https://d")
        open_ = create_task(title="Open")
        create_task(title="Hidden", status=TaskStatus.INACTIVE)
        task_service.auto_verify_link_task(user_id, done)

        items = {item.id: item for item in task_service.list_active_tasks(user_id)}

        assert set(items) == {done, open_}
        assert items[done].is_completed is True
        assert items[open_].is_completed is False


class TestTaskAdmin:
    def test_crud(self, task_service):
        created = task_service.create_task(
            TaskCreateRequest(title="Subscribe", reward=10, task_type=TaskType.LINK_CLICK,
                              verification_url="https://s")
        )
        assert created.task_type == TaskType.LINK_CLICK.value

        updated = task_service.update_task(
            created.id, TaskUpdateRequest(title="Subscribe!", reward=20)
        )
        assert updated.reward == 20
        assert updated.task_type == TaskType.MANUAL.value

        assert task_service.delete_task(created.id) is True
        with pytest.raises(TaskNotFoundError):
            task_service.get_task(created.id)

    def test_delete_keeps_paid_ledger(
        self, task_service, create_user, create_task, balance_of, assert_ledger_invariant
    ):
        user_id = create_user("alice")
        task_id = create_task(reward=30, task_type=TaskType.LINK_CLICK, verification_url="https://l")
        task_service.auto_verify_link_task(user_id, task_id)

        task_service.delete_task(task_id)

        assert balance_of(user_id) == 30
        assert_ledger_invariant()

    def test_delete_missing(self, task_service):
        with pytest.raises(TaskNotFoundError):
            task_service.delete_task(1234)
