"""
Tests for joining equbs, approving requests and automatic activation.
"""

from __future__ import annotations

import pytest
from fastapi import HTTPException

from app.modules.memberships.service import MembershipService
from tests.conftest import ADMIN_ID, MEMBER_IDS


def _messages_for(db, user_id):
    return [n["message"] for n in db.rows("notifications") if n["user_id"] == user_id]


class TestJoin:
    def test_join_creates_pending_request_and_notifies_admin(self, fake_supabase, seed_equb) -> None:
        equb = seed_equb()
        service = MembershipService(fake_supabase)
        profile = fake_supabase.rows("profiles")[1]

        membership = service.join_equb(equb["id"], profile)

        assert membership.status.value == "pending"
        assert membership.equb_name == "Merkato Traders"
        assert _messages_for(fake_supabase, ADMIN_ID) == [
            'Member 1 has requested to join "Merkato Traders".'
        ]

    def test_rejected_member_can_reapply(self, fake_supabase, seed_equb) -> None:
        equb = seed_equb()
        fake_supabase.rows("memberships").append(
            {"user_id": MEMBER_IDS[0], "equb_id": equb["id"], "status": "rejected", "join_date": None}
        )
        service = MembershipService(fake_supabase)

        service.join_equb(equb["id"], fake_supabase.rows("profiles")[1])

        rows = [m for m in fake_supabase.rows("memberships") if m["user_id"] == MEMBER_IDS[0]]
        assert len(rows) == 1
        assert rows[0]["status"] == "pending"

    def test_cannot_join_twice(self, fake_supabase, seed_equb) -> None:
        equb = seed_equb(members=[MEMBER_IDS[0]])
        with pytest.raises(HTTPException) as exc:
            MembershipService(fake_supabase).join_equb(equb["id"], fake_supabase.rows("profiles")[1])
        assert exc.value.status_code == 409

    def test_cannot_join_active_equb(self, fake_supabase, seed_equb) -> None:
        equb = seed_equb(status="Active")
        with pytest.raises(HTTPException) as exc:
            MembershipService(fake_supabase).join_equb(equb["id"], fake_supabase.rows("profiles")[1])
        assert exc.value.status_code == 409

    def test_unknown_equb_is_404(self, fake_supabase) -> None:
        with pytest.raises(HTTPException) as exc:
            MembershipService(fake_supabase).join_equb("missing", fake_supabase.rows("profiles")[1])
        assert exc.value.status_code == 404

    def test_admin_notification_failure_does_not_fail_join(self, fake_supabase, seed_equb) -> None:
        equb = seed_equb()
        fake_supabase.fail_on.add(("notifications", "insert"))

        membership = MembershipService(fake_supabase).join_equb(equb["id"], fake_supabase.rows("profiles")[1])

        assert membership.status.value == "pending"


class TestDecide:
    def test_reject_notifies_member_and_admin(self, fake_supabase, seed_equb) -> None:
        equb = seed_equb()
        fake_supabase.rows("memberships").append(
            {"user_id": MEMBER_IDS[0], "equb_id": equb["id"], "status": "pending", "join_date": None}
        )
        admin = {"id": ADMIN_ID}

        result = MembershipService(fake_supabase).decide(equb["id"], MEMBER_IDS[0], "rejected", admin)

        assert result.status.value == "rejected"
        assert _messages_for(fake_supabase, MEMBER_IDS[0]) == [
            'Your request to join "Merkato Traders" has been rejected.'
        ]
        assert _messages_for(fake_supabase, ADMIN_ID) == [
            "You have rejected Member 1's request for \"Merkato Traders\"."
        ]

    def test_already_decided_request_is_conflict(self, fake_supabase, seed_equb) -> None:
        equb = seed_equb(members=MEMBER_IDS[:1])

        with pytest.raises(HTTPException) as exc:
            MembershipService(fake_supabase).decide(equb["id"], MEMBER_IDS[0], "approved", {"id": ADMIN_ID})

        assert exc.value.status_code == 409
        assert fake_supabase.rows("notifications") == []

    def test_approval_on_full_active_equb_is_conflict(self, fake_supabase, seed_equb) -> None:
        equb = seed_equb(status="Active", max_members=2, members=MEMBER_IDS[:2])
        fake_supabase.rows("memberships").append(
            {"user_id": MEMBER_IDS[2], "equb_id": equb["id"], "status": "pending", "join_date": None}
        )

        with pytest.raises(HTTPException) as exc:
            MembershipService(fake_supabase).decide(equb["id"], MEMBER_IDS[2], "approved", {"id": ADMIN_ID})

        assert exc.value.status_code == 409
        approved = [m for m in fake_supabase.rows("memberships") if m["status"] == "approved"]
        assert len(approved) == 2

    def test_approval_beyond_max_members_is_conflict(self, fake_supabase, seed_equb) -> None:
        equb = seed_equb(max_members=2, members=MEMBER_IDS[:2])
        fake_supabase.rows("memberships").append(
            {"user_id": MEMBER_IDS[2], "equb_id": equb["id"], "status": "pending", "join_date": None}
        )

        with pytest.raises(HTTPException) as exc:
            MembershipService(fake_supabase).decide(equb["id"], MEMBER_IDS[2], "approved", {"id": ADMIN_ID})

        assert exc.value.status_code == 409

    def test_pending_request_on_full_equb_can_still_be_rejected(self, fake_supabase, seed_equb) -> None:
        equb = seed_equb(status="Active", max_members=2, members=MEMBER_IDS[:2])
        fake_supabase.rows("memberships").append(
            {"user_id": MEMBER_IDS[2], "equb_id": equb["id"], "status": "pending", "join_date": None}
        )

        result = MembershipService(fake_supabase).decide(equb["id"], MEMBER_IDS[2], "rejected", {"id": ADMIN_ID})

        assert result.status.value == "rejected"

    def test_missing_request_is_404(self, fake_supabase, seed_equb) -> None:
        equb = seed_equb()
        with pytest.raises(HTTPException) as exc:
            MembershipService(fake_supabase).decide(equb["id"], MEMBER_IDS[0], "approved", {"id": ADMIN_ID})
        assert exc.value.status_code == 404


class TestAutoActivation:
    def test_final_approval_activates_exactly_once(self, fake_supabase, seed_equb) -> None:
        equb = seed_equb(members=MEMBER_IDS[:2])
        fake_supabase.rows("memberships").append(
            {"user_id": MEMBER_IDS[2], "equb_id": equb["id"], "status": "pending", "join_date": None}
        )
        service = MembershipService(fake_supabase)

        service.decide(equb["id"], MEMBER_IDS[2], "approved", {"id": ADMIN_ID})
        assert service.activate_full_equbs() == []

        stored = fake_supabase.rows("equbs")[0]
        assert stored["status"] == "Active"
        activation_msg = 'The Equb group "Merkato Traders" is now full and has become Active!'
        for uid in MEMBER_IDS:
            assert _messages_for(fake_supabase, uid).count(activation_msg) == 1

    def test_partial_approval_keeps_equb_open(self, fake_supabase, seed_equb) -> None:
        equb = seed_equb(members=MEMBER_IDS[:1])
        fake_supabase.rows("memberships").append(
            {"user_id": MEMBER_IDS[1], "equb_id": equb["id"], "status": "pending", "join_date": None}
        )

        MembershipService(fake_supabase).decide(equb["id"], MEMBER_IDS[1], "approved", {"id": ADMIN_ID})

        assert fake_supabase.rows("equbs")[0]["status"] == "Open"

    def test_sweep_activates_only_full_equbs(self, fake_supabase, seed_equb) -> None:
        full = seed_equb(name="Full", max_members=2, members=MEMBER_IDS[:2])
        seed_equb(name="Half", max_members=3, members=MEMBER_IDS[:1])

        activated = MembershipService(fake_supabase).activate_full_equbs()

        assert activated == [full["id"]]
        statuses = {e["name"]: e["status"] for e in fake_supabase.rows("equbs")}
        assert statuses == {"Full": "Active", "Half": "Open"}

    def test_failed_activation_update_is_logged_not_raised(self, fake_supabase, seed_equb) -> None:
        seed_equb(max_members=1, members=MEMBER_IDS[:1])
        fake_supabase.fail_on.add(("equbs", "update"))

        assert MembershipService(fake_supabase).activate_full_equbs() == []


class TestRoutes:
    def test_member_joins_and_admin_approves(self, api, fake_supabase, seed_equb) -> None:
        equb = seed_equb(max_members=1)

        r = api.as_user(MEMBER_IDS[0]).post(f"/api/v1/equbs/{equb['id']}/join")
        assert r.status_code == 201

        r = api.as_user(ADMIN_ID).get("/api/v1/memberships/requests")
        assert [m["user_id"] for m in r.json()] == [MEMBER_IDS[0]]

        r = api.as_user(ADMIN_ID).put(
            f"/api/v1/equbs/{equb['id']}/memberships/{MEMBER_IDS[0]}", json={"status": "approved"}
        )
        assert r.status_code == 200
        assert fake_supabase.rows("equbs")[0]["status"] == "Active"

    def test_member_cannot_decide(self, api, seed_equb) -> None:
        equb = seed_equb()
        r = api.as_user(MEMBER_IDS[0]).put(
            f"/api/v1/equbs/{equb['id']}/memberships/{MEMBER_IDS[1]}", json={"status": "approved"}
        )
        assert r.status_code == 403

    def test_member_cannot_read_other_members_memberships(self, api) -> None:
        r = api.as_user(MEMBER_IDS[0]).get(f"/api/v1/users/{MEMBER_IDS[1]}/memberships")
        assert r.status_code == 403

    def test_invalid_decision_rejected(self, api, seed_equb) -> None:
        equb = seed_equb()
        r = api.as_user(ADMIN_ID).put(
            f"/api/v1/equbs/{equb['id']}/memberships/{MEMBER_IDS[0]}", json={"status": "maybe"}
        )
        assert r.status_code == 422
