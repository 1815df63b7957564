import asyncio
from datetime import date, datetime, timedelta
from types import SimpleNamespace

import httpx
import pytest

from app.models_messaging import TwilioIntegration, TwilioSMSLog
from app.models_sales import Quote
from app.services import twilio_service
from app.services.twilio_service import encrypt_credential
from app.worker import (
    WorkerSettings,
    dispatch_scheduled_campaigns,
    expire_stale_quotes_task,
    send_quote_reminders,
)


@pytest.fixture
def twilio_outbox(db, monkeypatch):
    """A verified Twilio account whose HTTP calls are captured instead of sent"""
    db.add(
        TwilioIntegration(
            account_sid=encrypt_credential("AC123"),
            auth_token=encrypt_credential("secret"),
            phone_number="+13105550100",
            is_verified=True,
        )
    )
    db.commit()

    outbox = []

    class FakeClient:
        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc):
            return False

        async def post(self, url, auth=None, data=None, timeout=None):
            outbox.append(data)
            return SimpleNamespace(status_code=201, json=lambda: {"sid": f"SM{len(outbox)}"})

    fake_httpx = SimpleNamespace(AsyncClient=lambda *args, **kwargs: FakeClient(), HTTPError=httpx.HTTPError)
    monkeypatch.setattr(twilio_service, "httpx", fake_httpx)
    return outbox


def _sent_quote(db, customer, number, sent_hours_ago, **fields):
    quote = Quote(
        quote_number=number,
        customer_id=customer.id,
        status="sent",
        access_token=f"tok{number[-3:]}",
        sent_at=datetime.utcnow() - timedelta(hours=sent_hours_ago),
        **fields,
    )
    db.add(quote)
    db.commit()
    return quote


def test_worker_registers_tasks():
    names = {task.__name__ for task in WorkerSettings.functions}
    assert names == {
        "send_campaign_task",
        "dispatch_scheduled_campaigns",
        "expire_stale_quotes_task",
        "send_quote_reminders",
    }
    assert len(WorkerSettings.cron_jobs) == 3


def test_quote_expiry_task(db, make_customer):
    customer = make_customer()
    quote = Quote(
        quote_number="Q-0001", customer_id=customer.id, status="viewed", valid_until=date.today() - timedelta(days=1)
    )
    db.add(quote)
    db.commit()

    assert asyncio.run(expire_stale_quotes_task({})) == {"expired": 1}
    db.expire_all()
    assert db.get(Quote, quote.id).status == "expired"


def test_dispatch_with_nothing_due(db):
    assert asyncio.run(dispatch_scheduled_campaigns({})) == {"dispatched": 0}


def test_quote_reminder_goes_out_once(db, make_customer, twilio_outbox):
    maria = make_customer(first_name="Maria")
    stale = _sent_quote(db, maria, "Q-0001", sent_hours_ago=30)
    _sent_quote(db, make_customer(), "Q-0002", sent_hours_ago=2)
    _sent_quote(db, make_customer(), "Q-0003", sent_hours_ago=48, viewed_at=datetime.utcnow())
    _sent_quote(db, make_customer(phone=None), "Q-0004", sent_hours_ago=48)

    assert asyncio.run(send_quote_reminders({})) == {"sent": 1, "errors": 0}
    assert len(twilio_outbox) == 1
    assert twilio_outbox[0]["To"] == maria.phone
    assert twilio_outbox[0]["Body"].startswith("Hey Maria! Just checking")
    assert twilio_outbox[0]["Body"].endswith(f"/quote/{stale.access_token}")

    log = db.query(TwilioSMSLog).one()
    assert (log.message_type, log.entity_type, log.entity_id) == ("quote_reminder", "Quote", stale.id)

    # The next hourly run finds the logged reminder and stays quiet
    assert asyncio.run(send_quote_reminders({})) == {"sent": 0, "errors": 0}
    assert len(twilio_outbox) == 1


def test_quote_reminders_follow_the_quote_switch(db, make_customer, twilio_outbox):
    _sent_quote(db, make_customer(), "Q-0001", sent_hours_ago=30)
    db.query(TwilioIntegration).one().send_quotes = False
    db.commit()

    assert asyncio.run(send_quote_reminders({})) == {"sent": 0, "errors": 1}
    assert twilio_outbox == []
