import importlib
from decimal import Decimal
from typing import Iterator

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient
from sqlmodel import Session, select


@pytest.fixture
def webapp_module(tmp_path, monkeypatch):
    monkeypatch.setenv("FINTRANS_SQLITE", str(tmp_path / "fintrans.db"))
    monkeypatch.setenv("FINTRANS_PROCESSOR_DELAY", "0")
    monkeypatch.setenv("FINTRANS_PROCESSOR_URL", "")
    monkeypatch.setenv("FINTRANS_STARTING_BALANCE", "1000")
    import fintrans.config

    importlib.reload(fintrans.config)
    import fintrans.webapp.persistence

    importlib.reload(fintrans.webapp.persistence)
    import fintrans.webapp.application

    importlib.reload(fintrans.webapp.application)
    import fintrans.webapp

    return importlib.reload(fintrans.webapp)


@pytest.fixture
def client(webapp_module) -> Iterator[TestClient]:
    with TestClient(webapp_module.app) as test_client:
        yield test_client


def sign_in(client: TestClient, name: str = "Dana") -> None:
    response = client.post("/login", data={"name": name, "pin": "1234"})
    assert response.status_code == 200


def test_new_visitor_sees_sign_in(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert "Sign in (demo)" in response.text


def test_sign_in_requires_name(client: TestClient) -> None:
    response = client.post("/login", data={"name": "", "pin": ""})

    assert "Enter name" in response.text
    assert "Sign in (demo)" in response.text


def test_signed_in_home_shows_balance_and_empty_history(client: TestClient) -> None:
    sign_in(client)

    response = client.get("/")

    assert "Welcome, Dana" in response.text
    assert "$1,000.00" in response.text
    assert "No transactions yet." in response.text


def test_send_money_completes_and_keeps_deduction(webapp_module, client: TestClient) -> None:
    sign_in(client)

    response = client.post("/send", data={"recipient": "Alice", "amount": "200"})

    assert response.status_code == 200
    assert "$800.00" in response.text
    wallet = client.get("/api/wallet").json()
    assert wallet["balance"] == 800.0
    assert wallet["busy"] is False
    assert wallet["transactions"][0]["counterparty"] == "Alice"
    assert wallet["transactions"][0]["status"] == "completed"
    assert webapp_module.logger.events("transfer_resolved")


def test_send_more_than_balance_is_rejected(client: TestClient) -> None:
    sign_in(client)

    response = client.post("/send", data={"recipient": "Bob", "amount": "6000"})

    assert "Insufficient funds" in response.text
    assert "value=\"Bob\"" in response.text
    wallet = client.get("/api/wallet").json()
    assert wallet["balance"] == 1000.0
    assert wallet["transactions"] == []


@pytest.mark.parametrize("form", [{"recipient": "", "amount": "10"}, {"recipient": "Alice", "amount": "-5"}, {}])
def test_invalid_send_changes_nothing(client: TestClient, form) -> None:
    sign_in(client)

    client.post("/send", data=form)

    wallet = client.get("/api/wallet").json()
    assert wallet["balance"] == 1000.0
    assert wallet["transactions"] == []


def test_processor_rejection_is_not_rolled_back(webapp_module, client: TestClient, monkeypatch) -> None:
    monkeypatch.setattr(webapp_module.application, "STARTING_BALANCE", Decimal("10000"))
    sign_in(client)

    response = client.post("/send", data={"recipient": "Carl", "amount": "6000"})

    assert "$4,000.00" in response.text
    assert "failed" in response.text
    wallet = client.get("/api/wallet").json()
    assert wallet["balance"] == 4000.0
    assert wallet["transactions"][0]["status"] == "failed"


def test_wallet_survives_restart(webapp_module, client: TestClient) -> None:
    sign_in(client)
    client.post("/send", data={"recipient": "Alice", "amount": "200"})

    webapp_module.application._flows.clear()
    response = client.get("/")

    assert "$800.00" in response.text
    assert "Alice" in response.text
    with Session(webapp_module.engine) as session:
        keys = [entry.key for entry in session.exec(select(webapp_module.StorageEntry)).all()]
    assert any(key.endswith(":fta_user") for key in keys)
    assert any(":fta_history_" in key for key in keys)


def test_logout_removes_profile(client: TestClient) -> None:
    sign_in(client)

    response = client.post("/logout")

    assert "Sign in (demo)" in response.text
    wallet = client.get("/api/wallet")
    assert wallet.status_code == 401
    assert wallet.json() == {"error": "Not signed in"}


def test_browsers_have_separate_wallets(webapp_module) -> None:
    with TestClient(webapp_module.app) as first, TestClient(webapp_module.app) as second:
        sign_in(first, "Dana")

        assert "Welcome, Dana" in first.get("/").text
        assert "Sign in (demo)" in second.get("/").text


def test_processor_route_is_mounted(client: TestClient) -> None:
    response = client.post("/api/transactions", json={"userId": "u1", "tx": {"id": "t1", "amount": 50}})

    assert response.json() == {"status": "completed"}
    assert client.get("/api/transactions").status_code == 405


def test_format_timestamp(webapp_module) -> None:
    from datetime import datetime

    assert webapp_module.format_timestamp(datetime(2026, 10, 18, 16, 5)) == "Oct 18, 2026 4:05 PM"
    assert webapp_module.format_timestamp(datetime(2026, 1, 2, 0, 30)) == "Jan 2, 2026 12:30 AM"


def test_format_timestamp_converts_to_display_zone(webapp_module) -> None:
    from datetime import datetime, timedelta, timezone

    moment = datetime(2026, 10, 18, 20, 5, tzinfo=timezone.utc)
    eastern = timezone(timedelta(hours=-4))

    assert webapp_module.format_timestamp(moment, eastern) == "Oct 18, 2026 4:05 PM"


def test_settled_wallets_are_released(webapp_module, client: TestClient) -> None:
    sign_in(client)

    client.post("/send", data={"recipient": "Alice", "amount": "200"})
    client.get("/api/wallet")

    assert webapp_module.application._flows == {}
    assert "$800.00" in client.get("/").text


def test_wallet_with_pending_transfer_is_kept(webapp_module, client: TestClient, monkeypatch) -> None:
    application = webapp_module.application
    sign_in(client)
    client.get("/")
    assert application._flows == {}

    async def never_settles(key, flow, record):
        return None

    monkeypatch.setattr(application, "settle_transfer", never_settles)
    client.post("/send", data={"recipient": "Alice", "amount": "200"})

    assert len(application._flows) == 1
    flow = next(iter(application._flows.values()))
    assert flow.busy and flow.has_pending
    assert "http-equiv='refresh'" in client.get("/").text
    assert len(application._flows) == 1


def test_form_routes_run_in_threadpool(webapp_module) -> None:
    import inspect

    application = webapp_module.application
    for handler in (application.index, application.login, application.logout, application.send, application.wallet):
        assert not inspect.iscoroutinefunction(handler)
