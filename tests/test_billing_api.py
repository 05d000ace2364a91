"""Checkout, portal, cancellation and plan information endpoints"""

from conftest import PROFESSIONAL_VARIANT, add_member, auth_headers

from app.models import Subscription


def checkout_body(owner, plan_id="professional", **overrides):
    body = {
        "planId": plan_id,
        "clinicId": owner.clinic_id,
        "userId": owner.user_id,
        "userEmail": owner.email,
        "locale": "fr",
    }
    body.update(overrides)
    return body


def give_subscription(db, clinic_id, plan="professional", status="active", external_id="sub_42"):
    db.add(
        Subscription(
            clinic_id=clinic_id,
            plan=plan,
            status=status,
            external_subscription_id=external_id,
            external_customer_id="cus_1",
        )
    )
    db.commit()


class TestCheckout:
    def test_creates_checkout_with_clinic_metadata(self, client, owner, billing_provider):
        response = client.post("/api/billing/create-checkout", json=checkout_body(owner), headers=owner.headers)

        assert response.status_code == 200
        assert response.json() == {"url": billing_provider.checkout_url}
        call = billing_provider.checkouts[0]
        assert call["variant_id"] == PROFESSIONAL_VARIANT
        assert call["custom"] == {"clinic_id": owner.clinic_id, "user_id": owner.user_id}
        assert call["redirect_url"].endswith("/fr/billing?success=true")

    def test_checkout_does_not_touch_subscription(self, client, db, owner):
        client.post("/api/billing/create-checkout", json=checkout_body(owner), headers=owner.headers)

        assert db.query(Subscription).count() == 0

    def test_missing_fields(self, client, owner):
        response = client.post(
            "/api/billing/create-checkout", json=checkout_body(owner, clinicId=None), headers=owner.headers
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}

    def test_free_plan_rejected(self, client, owner):
        response = client.post(
            "/api/billing/create-checkout", json=checkout_body(owner, plan_id="starter"), headers=owner.headers
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid plan or free tier selected"}

    def test_unknown_plan_rejected(self, client, owner):
        response = client.post(
            "/api/billing/create-checkout", json=checkout_body(owner, plan_id="platinum"), headers=owner.headers
        )

        assert response.status_code == 400

    def test_non_member_rejected(self, client, owner):
        response = client.post(
            "/api/billing/create-checkout", json=checkout_body(owner), headers=auth_headers("stranger")
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Not a member of this clinic"}

    def test_provider_failure(self, client, owner, billing_provider):
        billing_provider.fail = True

        response = client.post("/api/billing/create-checkout", json=checkout_body(owner), headers=owner.headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to create checkout"}

    def test_requires_authentication(self, client, owner):
        response = client.post("/api/billing/create-checkout", json=checkout_body(owner))

        assert response.status_code == 401


class TestPortal:
    def test_missing_clinic(self, client, owner):
        response = client.post("/api/billing/portal", json={}, headers=owner.headers)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing clinic ID"}

    def test_no_subscription(self, client, owner):
        response = client.post("/api/billing/portal", json={"clinicId": owner.clinic_id}, headers=owner.headers)

        assert response.status_code == 404
        assert response.json() == {"error": "No subscription found"}

    def test_returns_portal_url(self, client, db, owner, billing_provider):
        give_subscription(db, owner.clinic_id)

        response = client.post("/api/billing/portal", json={"clinicId": owner.clinic_id}, headers=owner.headers)

        assert response.status_code == 200
        assert response.json() == {"url": billing_provider.portal_url}

    def test_portal_url_missing(self, client, db, owner, billing_provider):
        give_subscription(db, owner.clinic_id)
        billing_provider.portal_url = None

        response = client.post("/api/billing/portal", json={"clinicId": owner.clinic_id}, headers=owner.headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Portal URL not available"}


class TestCancel:
    def test_requests_cancellation_without_local_change(self, client, db, owner, billing_provider):
        give_subscription(db, owner.clinic_id)

        response = client.post("/api/billing/cancel", headers=owner.headers)

        assert response.status_code == 200
        assert billing_provider.cancelled == ["sub_42"]
        db.expire_all()
        subscription = db.query(Subscription).filter(Subscription.clinic_id == owner.clinic_id).one()
        assert subscription.status == "active"
        assert subscription.plan == "professional"

    def test_no_subscription(self, client, owner):
        response = client.post("/api/billing/cancel", headers=owner.headers)

        assert response.status_code == 400
        assert response.json() == {"error": "No active subscription found"}

    def test_members_cannot_cancel(self, client, db, owner):
        member = add_member(db, owner.clinic_id, role="doctor")

        response = client.post("/api/billing/cancel", headers=auth_headers(member.user_id, member.email))

        assert response.status_code == 403


class TestPlanInformation:
    def test_lists_plans(self, client):
        response = client.get("/api/billing/plans")

        assert response.status_code == 200
        plans = {plan["id"]: plan for plan in response.json()}
        assert plans["starter"]["patient_limit"] == 20
        assert plans["starter"]["is_free"] is True
        assert plans["enterprise"]["team_limit"] == -1

    def test_clinic_without_row_is_starter(self, client, owner):
        response = client.get("/api/billing/subscription", headers=owner.headers)

        assert response.status_code == 200
        body = response.json()
        assert body["plan"] == "starter"
        assert body["status"] == "active"
        assert body["has_subscription"] is False

    def test_usage(self, client, db, owner):
        give_subscription(db, owner.clinic_id)

        body = client.get("/api/billing/usage", headers=owner.headers).json()

        assert body["plan"] == "professional"
        assert body["members_count"] == 1
        assert body["members_limit"] == 3
        assert body["can_add_member"] is True


class TestVariants:
    def test_variants_show_configured_plan(self, client, owner, billing_provider):
        billing_provider.variants = [
            {"id": PROFESSIONAL_VARIANT, "attributes": {"name": "Pro monthly", "status": "published", "price": 2900}},
            {"id": "555", "attributes": {"name": "Legacy", "status": "draft", "price": 900}},
        ]

        response = client.get("/api/billing/variants", headers=owner.headers)

        assert response.status_code == 200
        assert [(v["id"], v["plan"]) for v in response.json()] == [
            (PROFESSIONAL_VARIANT, "professional"),
            ("555", None),
        ]

    def test_variants_admin_only(self, client, db, owner):
        member = add_member(db, owner.clinic_id, role="nurse")

        response = client.get("/api/billing/variants", headers=auth_headers(member.user_id, member.email))

        assert response.status_code == 403

    def test_provider_failure(self, client, owner, billing_provider):
        billing_provider.fail = True

        response = client.get("/api/billing/variants", headers=owner.headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to list variants"}
