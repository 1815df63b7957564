import asyncio
import random
from datetime import datetime, timedelta

import pytest

from app.domain.marketing.ab_testing import VariantStats, determine_winner, split_recipients
from app.domain.marketing.repository import CampaignRepository
from app.domain.marketing.service import CampaignService, render_template
from app.models_marketing import Campaign, CampaignRecipient, Coupon, CouponReward


def _campaign(client, headers, **fields):
    payload = {"name": "Winter promo", "channel": "sms", "sms_template": "Hi {first_name}, use {coupon_code}"}
    payload.update(fields)
    response = client.post("/api/marketing/campaigns", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


# ============================================================================
# A/B TESTING
# ============================================================================


def test_split_recipients_follows_percentages():
    groups = split_recipients(list(range(1, 11)), [(1, 30), (2, 70)], rng=random.Random(7))
    assert len(groups[1]) == 3
    assert len(groups[2]) == 7
    assert sorted(groups[1] + groups[2]) == list(range(1, 11))


def test_split_recipients_without_variants():
    assert split_recipients([1, 2, 3], []) == {}


def test_split_remainder_goes_to_last_variant():
    groups = split_recipients([1, 2, 3], [(1, 20), (2, 20)], rng=random.Random(1))
    assert len(groups[1]) == 0
    assert len(groups[2]) == 3


def test_determine_winner_by_click_through():
    stats = [
        VariantStats(variant_id=1, label="A", sent=100, delivered=90, clicked=9),
        VariantStats(variant_id=2, label="B", sent=100, delivered=80, clicked=16),
    ]
    assert determine_winner(stats) == 2


def test_determine_winner_tie_uses_delivery_rate():
    stats = [
        VariantStats(variant_id=1, label="A", sent=100, delivered=50, clicked=5),
        VariantStats(variant_id=2, label="B", sent=100, delivered=100, clicked=10),
    ]
    assert determine_winner(stats) == 2


def test_determine_winner_skips_unsent_variants():
    assert determine_winner([VariantStats(variant_id=1, label="A")]) is None


def test_render_template_keeps_unknown_placeholders():
    assert render_template("Hi {first_name} {mystery}", {"first_name": "Ana"}) == "Hi Ana {mystery}"


# ============================================================================
# CAMPAIGNS
# ============================================================================


def test_variants_must_add_up(client, owner_headers):
    response = client.post(
        "/api/marketing/campaigns",
        json={
            "name": "Split",
            "variants": [
                {"variant_label": "A", "sms_template": "a", "split_percentage": 50},
                {"variant_label": "B", "sms_template": "b", "split_percentage": 40},
            ],
        },
        headers=owner_headers,
    )
    assert response.status_code == 400


def test_audience_preview_counts_consent(client, owner_headers, make_customer):
    make_customer(sms_consent=True, tags=["vip"], lifetime_spend=500.0)
    make_customer(sms_consent=False, tags=["vip"], lifetime_spend=600.0)
    make_customer(sms_consent=True, tags=[], lifetime_spend=700.0)

    response = client.post(
        "/api/marketing/campaigns/audience-preview",
        json={"channel": "sms", "audience_filters": {"tags": ["vip"], "min_spend": 100}},
        headers=owner_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["total_match"] == 2
    assert body["consent_eligible"] == 1
    assert len(body["sample"]) == 1


def test_send_respects_consent_and_clones_coupons(client, db, owner_headers, make_customer, sent_messages):
    opted_in = make_customer(first_name="Ana", sms_consent=True)
    make_customer(first_name="Ben", sms_consent=False)

    template = Coupon(code="WINTER", name="Winter", status="active", min_purchase=25.0)
    db.add(template)
    db.flush()
    db.add(CouponReward(coupon_id=template.id, applies_to="order", discount_type="flat", discount_value=10.0))
    db.commit()

    campaign = _campaign(client, owner_headers, coupon_id=template.id)
    response = client.post(f"/api/marketing/campaigns/{campaign['id']}/send", headers=owner_headers)
    assert response.status_code == 200
    assert response.json() == {"status": "sent", "recipient_count": 1, "delivered_count": 1}

    assert len(sent_messages) == 1
    assert sent_messages[0]["to"] == opted_in.phone

    clone = db.query(Coupon).filter(Coupon.campaign_id == campaign["id"]).one()
    assert clone.customer_id == opted_in.id
    assert clone.is_single_use is True
    assert clone.max_uses == 1
    assert len(clone.rewards) == 1
    assert sent_messages[0]["body"] == f"Hi Ana, use {clone.code}"

    again = client.post(f"/api/marketing/campaigns/{campaign['id']}/send", headers=owner_headers)
    assert again.status_code == 400


def test_schedule_then_dispatch(client, db, owner_headers, make_customer, sent_messages):
    make_customer(sms_consent=True)
    campaign = _campaign(client, owner_headers, sms_template="Spring is here")

    when = (datetime.utcnow() + timedelta(hours=1)).isoformat()
    scheduled = client.post(
        f"/api/marketing/campaigns/{campaign['id']}/send", json={"schedule_at": when}, headers=owner_headers
    )
    assert scheduled.json()["status"] == "scheduled"

    service = CampaignService(db)
    assert asyncio.run(service.dispatch_scheduled(datetime.utcnow())) == 0
    assert asyncio.run(service.dispatch_scheduled(datetime.utcnow() + timedelta(hours=2))) == 1
    assert db.get(Campaign, campaign["id"]).status == "sent"


def test_ab_send_assigns_variants(client, db, owner_headers, make_customer, sent_messages):
    for _ in range(4):
        make_customer(sms_consent=True)

    campaign = _campaign(
        client,
        owner_headers,
        variants=[
            {"variant_label": "A", "sms_template": "Offer A", "split_percentage": 50},
            {"variant_label": "B", "sms_template": "Offer B", "split_percentage": 50},
        ],
    )
    client.post(f"/api/marketing/campaigns/{campaign['id']}/send", headers=owner_headers)

    bodies = sorted(m["body"] for m in sent_messages)
    assert bodies == ["Offer A", "Offer A", "Offer B", "Offer B"]

    # One click on variant B makes it the winner
    recipient = (
        db.query(CampaignRecipient)
        .filter(CampaignRecipient.campaign_id == campaign["id"], CampaignRecipient.variant_id == campaign["variants"][1]["id"])
        .first()
    )
    recipient.clicked_at = datetime.utcnow()
    db.commit()

    stats = client.get(f"/api/marketing/campaigns/{campaign['id']}/variants", headers=owner_headers).json()
    assert [s["sent"] for s in stats] == [2, 2]
    assert stats[1]["click_through_rate"] == 0.5

    winner = client.post(f"/api/marketing/campaigns/{campaign['id']}/determine-winner", headers=owner_headers)
    assert winner.json() == {"winner_variant_id": campaign["variants"][1]["id"]}


def test_edit_rules(client, owner_headers):
    campaign = _campaign(client, owner_headers)

    cancelled = client.post(f"/api/marketing/campaigns/{campaign['id']}/cancel", headers=owner_headers)
    assert cancelled.json()["status"] == "cancelled"

    edit = client.patch(f"/api/marketing/campaigns/{campaign['id']}", json={"name": "New"}, headers=owner_headers)
    assert edit.status_code == 400
    assert edit.json()["error"] == "Can only edit draft or scheduled campaigns"

    assert client.delete(f"/api/marketing/campaigns/{campaign['id']}", headers=owner_headers).status_code == 400


def test_campaigns_need_permission(client, cashier, auth_headers):
    assert client.get("/api/marketing/campaigns", headers=auth_headers(cashier)).status_code == 403


def test_campaign_removed_when_variants_fail(client, db, owner_headers, monkeypatch):
    def broken_variants(*args, **kwargs):
        raise RuntimeError("variant insert failed")

    monkeypatch.setattr(CampaignRepository, "replace_variants", broken_variants)
    response = client.post(
        "/api/marketing/campaigns",
        json={
            "name": "Split",
            "variants": [
                {"variant_label": "A", "sms_template": "a", "split_percentage": 50},
                {"variant_label": "B", "sms_template": "b", "split_percentage": 50},
            ],
        },
        headers=owner_headers,
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to create campaign variants"}
    assert db.query(Campaign).count() == 0


def test_send_failure_marks_campaign_failed(client, db, owner_headers, make_customer, sent_messages, monkeypatch):
    make_customer(sms_consent=True)
    make_customer(sms_consent=True)
    campaign = _campaign(client, owner_headers, sms_template="Spring is here")

    original = CampaignRepository.add_recipient
    calls = {"n": 0}

    def flaky_add_recipient(db, **data):
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("database went away")
        return original(db, **data)

    monkeypatch.setattr(CampaignRepository, "add_recipient", staticmethod(flaky_add_recipient))

    with pytest.raises(RuntimeError):
        asyncio.run(CampaignService(db).send_campaign(campaign["id"]))

    db.expire_all()
    failed = db.get(Campaign, campaign["id"])
    assert failed.status == "failed"
    assert failed.recipient_count == 2
    assert failed.delivered_count == 2
    assert db.query(CampaignRecipient).filter(CampaignRecipient.campaign_id == campaign["id"]).count() == 1
