"""Quota ledger — applies the one-time balance deduction on approval."""

from __future__ import annotations

import logging
from typing import Mapping

from leave_portal.common.constants import LeaveCategory
from leave_portal.leave.calendar import compute_chargeable_days
from leave_portal.leave.quota import QuotaSet, category_key_of, deduct
from leave_portal.leave.schemas import LeaveRequestOut
from leave_portal.storage.base import LeaveRepository

logger = logging.getLogger(__name__)


class QuotaLedger:
    """Deducts chargeable days from a requester's QuotaSet at most once per request."""

    @staticmethod
    async def on_approved(
        repo: LeaveRepository,
        request: LeaveRequestOut,
        quotas_before: Mapping[LeaveCategory, int],
    ) -> QuotaSet:
        """Write the post-deduction QuotaSet for ``request``'s owner.

        Two guards keep the deduction at most once:

        - a request already carrying ``deduction_applied`` is left alone;
        - a request whose id is recorded on the owner's
          ``deducted_request_ids`` is already reflected in the balance. This
          covers a retry after the quota write landed but the status write
          did not.

        In both cases nothing is written and the current balance is returned.
        The quota write records the request id in the same write.
        """
        if request.deduction_applied:
            logger.info(
                "Skipping duplicate deduction for leave request %s", request.id,
            )
            return dict(quotas_before)

        if request.id is not None:
            owner = await repo.get_user(request.user_id)
            if owner is not None and request.id in owner.deducted_request_ids:
                logger.info(
                    "Balance of user %s already reflects leave request %s; "
                    "not deducting again",
                    request.user_id, request.id,
                )
                return dict(owner.quotas)

        days = compute_chargeable_days(
            request.start_date, request.end_date, request.manual_days,
        )
        category = category_key_of(request.category)
        updated = deduct(quotas_before, category, days)

        # Full replacement, never an increment
        await repo.set_user_quotas(request.user_id, updated, request.id)

        logger.info(
            "Deducted %d %s day(s) for user %s (request %s): %d -> %d",
            days,
            category.value,
            request.user_id,
            request.id,
            quotas_before.get(category, 0),
            updated[category],
        )
        return updated
