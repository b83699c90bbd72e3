"""Tests for prize redemption and claim processing."""

import pytest

from app.core.errors import InvalidRequestError, NotFoundError
from app.db.models import Prize, RedemptionStatusEnum
from app.services.prizes import redeem_prize, update_claim_status
from factories import auth_header, make_user


def _prize(db, points_required=50, stock=2, **fields) -> Prize:
    prize = Prize(name=fields.pop("name", "Mobile top-up"), points_required=points_required, stock=stock, **fields)
    db.add(prize)
    db.commit()
    return prize


class TestRedeem:
    def test_deducts_points_and_stock(self, db):
        user = make_user(db, points=120)
        prize = _prize(db)

        claim = redeem_prize(db, user, prize.id, full_name="Ali", whatsapp_number="03001234567")

        assert user.points == 70
        assert prize.stock == 1
        assert claim.status == RedemptionStatusEnum.PENDING
        assert claim.points_used == 50

    def test_insufficient_points(self, db):
        user = make_user(db, points=10)
        prize = _prize(db)
        with pytest.raises(InvalidRequestError) as exc:
            redeem_prize(db, user, prize.id)
        assert exc.value.details == {"required": 50, "available": 10}
        assert user.points == 10

    def test_out_of_stock(self, db):
        with pytest.raises(InvalidRequestError):
            redeem_prize(db, make_user(db, points=500), _prize(db, stock=0).id)

    def test_inactive_prize(self, db):
        with pytest.raises(NotFoundError):
            redeem_prize(db, make_user(db, points=500), _prize(db, is_active=False).id)


class TestClaimProcessing:
    def test_reject_refunds_once(self, db):
        user = make_user(db, points=50)
        prize = _prize(db, stock=1)
        claim = redeem_prize(db, user, prize.id)

        update_claim_status(db, claim.id, RedemptionStatusEnum.REJECTED, notes="Invalid address")
        update_claim_status(db, claim.id, RedemptionStatusEnum.REJECTED)

        assert user.points == 50
        assert prize.stock == 1
        assert claim.notes == "Invalid address"

    def test_rejected_claim_cannot_reopen(self, db):
        user = make_user(db, points=50)
        claim = redeem_prize(db, user, _prize(db).id)
        update_claim_status(db, claim.id, RedemptionStatusEnum.REJECTED)
        with pytest.raises(InvalidRequestError):
            update_claim_status(db, claim.id, RedemptionStatusEnum.APPROVED)

    def test_approve_keeps_deduction(self, db):
        user = make_user(db, points=50)
        claim = redeem_prize(db, user, _prize(db).id)
        update_claim_status(db, claim.id, RedemptionStatusEnum.APPROVED)
        assert user.points == 0
        assert claim.processed_at is not None


class TestPrizeEndpoints:
    def test_catalogue_redeem_and_admin_claims(self, client, db, admin_headers):
        created = client.post(
            "/api/admin/prizes",
            json={"name": "Earbuds", "pointsRequired": 30, "stock": 5, "category": "electronics"},
            headers=admin_headers,
        )
        assert created.status_code == 201
        prize_id = created.json()["id"]

        catalogue = client.get("/api/prizes").json()
        assert [p["name"] for p in catalogue] == ["Earbuds"]

        user = make_user(db, points=40)
        headers = auth_header(user)
        redeemed = client.post(
            "/api/prize-redemption",
            json={"prizeId": prize_id, "fullName": "Sara", "whatsappNumber": "03001234567"},
            headers=headers,
        )
        assert redeemed.status_code == 201
        claim = redeemed.json()
        assert (claim["prizeName"], claim["pointsUsed"], claim["status"]) == ("Earbuds", 30, "pending")

        mine = client.get("/api/prize-redemption", headers=headers).json()
        assert [c["id"] for c in mine] == [claim["id"]]

        listed = client.get("/api/admin/claims", params={"status": "pending"}, headers=admin_headers)
        assert [c["id"] for c in listed.json()] == [claim["id"]]

        rejected = client.put(
            f"/api/admin/claims/{claim['id']}",
            json={"status": "rejected", "notes": "Duplicate"},
            headers=admin_headers,
        )
        assert rejected.status_code == 200
        assert rejected.json()["status"] == "rejected"
        db.expire_all()
        assert user.points == 40

    def test_not_enough_points_is_400(self, client, db):
        prize = _prize(db, points_required=100)
        response = client.post(
            "/api/prize-redemption",
            json={"prizeId": str(prize.id)},
            headers=auth_header(make_user(db, points=5)),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Insufficient points"

    def test_update_prize(self, client, db, admin_headers):
        prize = _prize(db)
        response = client.patch(
            f"/api/admin/prizes/{prize.id}", json={"stock": 9, "isActive": False}, headers=admin_headers
        )
        assert response.status_code == 200
        assert (response.json()["stock"], response.json()["isActive"]) == (9, False)
        assert client.get("/api/prizes").json() == []

    @pytest.mark.parametrize("field", ["name", "category", "pointsRequired", "stock", "isActive"])
    def test_null_for_required_prize_field_is_422(self, client, db, admin_headers, field):
        prize = _prize(db)
        response = client.patch(
            f"/api/admin/prizes/{prize.id}", json={field: None}, headers=admin_headers
        )
        assert response.status_code == 422
        db.expire_all()
        assert (prize.name, prize.stock) == ("Mobile top-up", 2)
