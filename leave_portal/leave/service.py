"""Leave service layer — submission, approvals, queues and dashboards.

Business logic:
  - Chargeable-day computation and balance check on submission
  - Approver resolution, stamped once on the request
  - Principal self-service: requests are auto-approved and charged immediately
  - Approve / reject / approve-all with a single guarded quota deduction
  - Approval queue filters, personal history and dashboard summary
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from leave_portal.common.constants import (
    LEAVE_CATEGORY_LABELS,
    TERMINAL_STATUSES,
    LeaveCategory,
    LeaveStatus,
    Role,
    is_admin_role,
)
from leave_portal.common.exceptions import (
    AppException,
    ForbiddenException,
    NotFoundException,
    PersistenceUnavailableException,
    ValidationException,
)
from leave_portal.leave.approvers import resolve_approver
from leave_portal.leave.calendar import compute_chargeable_days
from leave_portal.leave.ledger import QuotaLedger
from leave_portal.leave.quota import category_key_of, has_sufficient_balance, total_remaining
from leave_portal.leave.schemas import (
    BulkApprovalFailure,
    BulkApprovalOut,
    DashboardOut,
    DeciderInfo,
    LeaveCategoryOut,
    LeaveRequestCreate,
    LeaveRequestOut,
)
from leave_portal.storage.base import LeaveRepository
from leave_portal.users.schemas import UserOut

logger = logging.getLogger(__name__)

RECENT_REQUESTS_LIMIT = 3


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave operations over an injected LeaveRepository."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _get_user(repo: LeaveRepository, user_id: uuid.UUID) -> UserOut:
        user = await repo.get_user(user_id)
        if user is None:
            raise NotFoundException("User", str(user_id))
        return user

    @staticmethod
    async def _get_request(repo: LeaveRepository, request_id: uuid.UUID) -> LeaveRequestOut:
        request = await repo.get_leave_request(request_id)
        if request is None:
            raise NotFoundException("LeaveRequest", str(request_id))
        return request

    @staticmethod
    def _authorize_decision(request: LeaveRequestOut, actor: UserOut, action: str) -> None:
        """Only the stamped approver, or an Admin variant, may decide; never the owner."""
        if request.user_id == actor.id:
            raise ForbiddenException(f"You cannot {action} your own leave request.")
        if request.approver_id != actor.id and not is_admin_role(actor.role):
            raise ForbiddenException(
                f"You are not authorized to {action} this leave request."
            )

    @staticmethod
    def _decider(actor: UserOut, *, deduction_applied: bool) -> DeciderInfo:
        return DeciderInfo(
            decided_by_id=actor.id,
            decided_by_name=actor.name,
            decided_at=datetime.now(timezone.utc),
            deduction_applied=deduction_applied,
        )

    @staticmethod
    def _describe(exc: AppException) -> str:
        if exc.errors:
            messages = [m for msgs in exc.errors.values() for m in msgs]
            if messages:
                return " ".join(messages)
        return exc.detail

    # ─────────────────────────────────────────────────────────────────
    # Submission
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def submit_leave(
        repo: LeaveRepository,
        requester_id: uuid.UUID,
        data: LeaveRequestCreate,
    ) -> LeaveRequestOut:
        """Validate and persist a leave request.

        Nothing is written when the category is unknown, the range has no
        chargeable days or the balance is insufficient. Principal requests are
        created already Approved, with the deduction applied in the same go.
        """
        requester = await LeaveService._get_user(repo, requester_id)
        category = category_key_of(data.category)

        days = compute_chargeable_days(data.start_date, data.end_date, data.manual_days)
        if days <= 0:
            raise ValidationException(
                {"dates": ["The selected range contains no working days."]}
            )
        if not has_sufficient_balance(requester.quotas, category, days):
            raise ValidationException(
                {
                    "category": [
                        f"Insufficient {category.value} balance: requested {days} "
                        f"day(s), available {requester.quotas.get(category, 0)}."
                    ]
                }
            )

        now = datetime.now(timezone.utc)
        draft = LeaveRequestOut(
            id=uuid.uuid4(),
            user_id=requester.id,
            user_name=requester.name,
            department=requester.department,
            category=category,
            start_date=data.start_date,
            end_date=data.end_date,
            manual_days=data.manual_days,
            total_days=days,
            reason=data.reason,
            status=LeaveStatus.pending,
            applied_at=now,
        )

        if requester.role == Role.principal:
            # Quota write first, then the Approved row with the flag set
            await QuotaLedger.on_approved(repo, draft, requester.quotas)
            created = await repo.create_leave_request(
                draft.model_copy(
                    update={
                        "status": LeaveStatus.approved,
                        "decided_by_id": requester.id,
                        "decided_by_name": requester.name,
                        "decided_at": now,
                        "deduction_applied": True,
                    }
                )
            )
            logger.info(
                "Auto-approved leave request %s for principal %s (%d day(s) %s)",
                created.id, requester.id, days, category.value,
            )
            return created

        approver_id = resolve_approver(requester, await repo.list_users())
        if approver_id is None:
            logger.warning(
                "No approver could be resolved for user %s (%s, %s); "
                "request stored without approver",
                requester.id, requester.role.value, requester.department.value,
            )
        return await repo.create_leave_request(
            draft.model_copy(update={"approver_id": approver_id})
        )

    # ─────────────────────────────────────────────────────────────────
    # Decisions
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def approve_leave(
        repo: LeaveRepository,
        request_id: uuid.UUID,
        approver: UserOut,
    ) -> LeaveRequestOut:
        """Approve a request and charge the owner's balance exactly once.

        Re-approving an already Approved request is a no-op.
        """
        request = await LeaveService._get_request(repo, request_id)
        LeaveService._authorize_decision(request, approver, "approve")

        if request.status == LeaveStatus.rejected:
            raise ValidationException(
                {"status": [f"Leave request is already {request.status.value}."]}
            )

        owner = await LeaveService._get_user(repo, request.user_id)
        await QuotaLedger.on_approved(repo, request, owner.quotas)
        if request.status == LeaveStatus.approved and request.deduction_applied:
            return request

        decider = LeaveService._decider(approver, deduction_applied=True)
        await repo.set_leave_request_status(request.id, LeaveStatus.approved, decider)
        return request.model_copy(
            update={"status": LeaveStatus.approved, **decider.model_dump()}
        )

    @staticmethod
    async def reject_leave(
        repo: LeaveRepository,
        request_id: uuid.UUID,
        approver: UserOut,
    ) -> LeaveRequestOut:
        """Reject a pending request; balances are untouched."""
        request = await LeaveService._get_request(repo, request_id)
        LeaveService._authorize_decision(request, approver, "reject")

        if request.status in TERMINAL_STATUSES:
            raise ValidationException(
                {"status": [f"Leave request is already {request.status.value}."]}
            )

        decider = LeaveService._decider(approver, deduction_applied=False)
        await repo.set_leave_request_status(request.id, LeaveStatus.rejected, decider)
        return request.model_copy(
            update={
                "status": LeaveStatus.rejected,
                **decider.model_dump(exclude={"deduction_applied"}),
            }
        )

    @staticmethod
    async def approve_all_pending(
        repo: LeaveRepository,
        approver: UserOut,
    ) -> BulkApprovalOut:
        """Approve every Pending request in ``approver``'s queue, one by one.

        Not atomic: each request succeeds or fails on its own. Storage outages
        abort the batch.
        """
        queue = await LeaveService.get_approval_queue(
            repo, approver, status=LeaveStatus.pending,
        )
        outcome = BulkApprovalOut()
        for request in queue:
            try:
                approved = await LeaveService.approve_leave(repo, request.id, approver)
            except PersistenceUnavailableException:
                raise
            except AppException as exc:
                outcome.failed.append(
                    BulkApprovalFailure(request_id=request.id, error=LeaveService._describe(exc))
                )
            else:
                outcome.approved.append(approved)
        return outcome

    # ─────────────────────────────────────────────────────────────────
    # Views
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_approval_queue(
        repo: LeaveRepository,
        approver: UserOut,
        *,
        status: Optional[LeaveStatus] = None,
        search: Optional[str] = None,
    ) -> list[LeaveRequestOut]:
        """Requests stamped with ``approver`` as approver, newest first."""
        needle = search.strip().lower() if search else ""
        return [
            r
            for r in await repo.list_leave_requests()
            if r.approver_id == approver.id
            and (status is None or r.status == status)
            and (not needle or needle in r.user_name.lower())
        ]

    @staticmethod
    async def list_my_requests(
        repo: LeaveRepository,
        user_id: uuid.UUID,
    ) -> list[LeaveRequestOut]:
        return [r for r in await repo.list_leave_requests() if r.user_id == user_id]

    @staticmethod
    async def get_dashboard(repo: LeaveRepository, user_id: uuid.UUID) -> DashboardOut:
        user = await LeaveService._get_user(repo, user_id)
        mine = await LeaveService.list_my_requests(repo, user_id)

        counts = {status: 0 for status in LeaveStatus}
        for request in mine:
            counts[request.status] += 1

        return DashboardOut(
            quotas=user.quotas,
            total_remaining=total_remaining(user.quotas),
            pending_count=counts[LeaveStatus.pending],
            approved_count=counts[LeaveStatus.approved],
            rejected_count=counts[LeaveStatus.rejected],
            recent_requests=mine[:RECENT_REQUESTS_LIMIT],
        )

    @staticmethod
    def list_categories() -> list[LeaveCategoryOut]:
        return [
            LeaveCategoryOut(code=category, label=LEAVE_CATEGORY_LABELS[category])
            for category in LeaveCategory
        ]
