"""Approver resolution tests — who receives a requester's leave."""

from __future__ import annotations

import uuid

from leave_portal.common.constants import ApproverRole, Department, Role
from leave_portal.leave.approvers import resolve_approver, resolve_registration_approver
from tests.conftest import _make_user


def _org():
    """Principal, two admins and a HOD for COMPS and IT, in registration order."""
    principal = _make_user(name="Principal", role=Role.principal)
    admin_1 = _make_user(name="Admin One", role=Role.admin_1)
    admin_2 = _make_user(name="Admin Two", role=Role.admin_2)
    hod_comps = _make_user(name="HOD Comps", role=Role.hod, department=Department.comps)
    hod_it = _make_user(name="HOD IT", role=Role.hod, department=Department.it)
    return principal, admin_1, admin_2, hod_comps, hod_it


class TestResolveApprover:

    def test_hod_route_uses_same_department(self):
        principal, admin_1, admin_2, hod_comps, hod_it = _org()
        staff = _make_user(department=Department.it, approver_role=ApproverRole.hod)
        users = [principal, admin_1, admin_2, hod_comps, hod_it, staff]
        assert resolve_approver(staff, users) == hod_it.id

    def test_hod_route_without_department_hod(self):
        principal, admin_1, admin_2, hod_comps, hod_it = _org()
        staff = _make_user(department=Department.mech, approver_role=ApproverRole.hod)
        users = [principal, admin_1, admin_2, hod_comps, hod_it, staff]
        assert resolve_approver(staff, users) is None

    def test_principal_route(self):
        principal, *rest = _org()
        staff = _make_user(
            role=Role.non_teaching_staff, approver_role=ApproverRole.principal,
        )
        assert resolve_approver(staff, [*rest, principal, staff]) == principal.id

    def test_chosen_admin_is_kept(self):
        principal, admin_1, admin_2, *rest = _org()
        staff = _make_user(approver_role=ApproverRole.admin, approver_id=admin_2.id)
        users = [principal, admin_1, admin_2, *rest, staff]
        assert resolve_approver(staff, users) == admin_2.id

    def test_missing_chosen_admin_falls_back_to_first_admin(self):
        principal, admin_1, admin_2, *rest = _org()
        staff = _make_user(approver_role=ApproverRole.admin, approver_id=uuid.uuid4())
        users = [principal, admin_1, admin_2, *rest, staff]
        assert resolve_approver(staff, users) == admin_1.id

    def test_chosen_admin_who_lost_admin_role_falls_back(self):
        principal, admin_1, *rest = _org()
        demoted = _make_user(role=Role.teaching_staff)
        staff = _make_user(approver_role=ApproverRole.admin, approver_id=demoted.id)
        users = [principal, admin_1, *rest, demoted, staff]
        assert resolve_approver(staff, users) == admin_1.id

    def test_admin_requester_goes_to_principal(self):
        principal, admin_1, *rest = _org()
        assert resolve_approver(admin_1, [principal, admin_1, *rest]) == principal.id

    def test_plain_admin_role_goes_to_principal(self):
        principal = _make_user(role=Role.principal)
        admin = _make_user(role=Role.admin)
        assert resolve_approver(admin, [admin, principal]) == principal.id

    def test_admin_requester_without_principal(self):
        admin = _make_user(role=Role.admin_2)
        assert resolve_approver(admin, [admin]) is None

    def test_principal_has_no_approver(self):
        principal, *rest = _org()
        assert resolve_approver(principal, [principal, *rest]) is None

    def test_hod_requester_goes_to_principal(self):
        principal, admin_1, admin_2, hod_comps, hod_it = _org()
        hod = hod_comps.model_copy(update={"approver_role": ApproverRole.hod})
        users = [principal, admin_1, admin_2, hod, hod_it]
        assert resolve_approver(hod, users) == principal.id

    def test_first_principal_in_repository_order(self):
        first = _make_user(role=Role.principal)
        second = _make_user(role=Role.principal)
        staff = _make_user(approver_role=ApproverRole.principal)
        assert resolve_approver(staff, [first, second, staff]) == first.id

    def test_never_returns_requester(self):
        # An admin choosing themselves as admin approver
        admin = _make_user(role=Role.admin_1)
        staff_admin = admin.model_copy(
            update={"role": Role.teaching_staff, "approver_role": ApproverRole.admin, "approver_id": admin.id}
        )
        assert resolve_approver(staff_admin, [staff_admin]) is None

    def test_no_declared_route(self):
        principal, *rest = _org()
        staff = _make_user(approver_role=None)
        assert resolve_approver(staff, [principal, *rest, staff]) is None


class TestRegistrationApprover:

    def test_admin_and_principal_record_none(self):
        principal, admin_1, *rest = _org()
        users = [principal, admin_1, *rest]
        for role in (Role.admin, Role.admin_1, Role.admin_2, Role.principal):
            assert resolve_registration_approver(
                role, Department.comps, ApproverRole.principal, None, users,
            ) is None

    def test_staff_resolves_hod(self):
        principal, admin_1, admin_2, hod_comps, hod_it = _org()
        users = [principal, admin_1, admin_2, hod_comps, hod_it]
        assert resolve_registration_approver(
            Role.teaching_staff, Department.comps, ApproverRole.hod, None, users,
        ) == hod_comps.id

    def test_staff_with_chosen_admin(self):
        principal, admin_1, admin_2, *rest = _org()
        users = [principal, admin_1, admin_2, *rest]
        assert resolve_registration_approver(
            Role.non_teaching_staff, Department.tpo, ApproverRole.admin, admin_2.id, users,
        ) == admin_2.id

    def test_admin_route_without_choice_uses_first_admin(self):
        principal, admin_1, admin_2, *rest = _org()
        users = [principal, admin_1, admin_2, *rest]
        assert resolve_registration_approver(
            Role.non_teaching_staff, Department.tpo, ApproverRole.admin, None, users,
        ) == admin_1.id
