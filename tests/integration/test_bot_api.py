"""Integration tests for the bot endpoints and their shared-secret guard."""
import pytest
from httpx import AsyncClient

from creditledger.config import settings
from tests.utils.factories import phone_number


@pytest.mark.asyncio
async def test_get_credits_registers_new_user(async_client: AsyncClient, bot_headers: dict) -> None:
    """An unknown number is created with the signup bonus."""
    response = await async_client.get(f"/api/bot/credits/{phone_number()}", headers=bot_headers)

    assert response.status_code == 200
    assert response.json() == {
        "status": "SUCCESS",
        "message": "You have 3 credits remaining.",
        "data": {"remaining_credits": 3, "user_exists": True},
    }


@pytest.mark.asyncio
async def test_deduct_walks_balance_down_to_insufficient(async_client: AsyncClient, bot_headers: dict) -> None:
    """Each image costs one credit until the bot is told to sell a plan."""
    phone = phone_number()
    await async_client.get(f"/api/bot/credits/{phone}", headers=bot_headers)

    messages = []
    for _ in range(3):
        response = await async_client.post("/api/bot/deduct", json={"phone_number": phone}, headers=bot_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "SUCCESS"
        messages.append(response.json()["message"])

    assert messages == [
        "Image generated successfully. You have 2 credits remaining.",
        "Image generated successfully. You have 1 credit remaining.",
        "Image generated successfully. You have no credits remaining.",
    ]

    response = await async_client.post("/api/bot/deduct", json={"phone_number": phone}, headers=bot_headers)

    assert response.status_code == 200
    assert response.json() == {
        "status": "INSUFFICIENT_CREDITS",
        "message": "You have no credits left. Please purchase a plan to continue.",
        "data": {"remaining_credits": 0},
    }

    balance = await async_client.get(f"/api/bot/credits/{phone}", headers=bot_headers)
    assert balance.json()["message"] == "You have no credits remaining."
    assert balance.json()["data"]["remaining_credits"] == 0


@pytest.mark.asyncio
async def test_deduct_for_unknown_number_creates_user_first(async_client: AsyncClient, bot_headers: dict) -> None:
    """A first-ever deduction spends one of the three bonus credits."""
    response = await async_client.post("/api/bot/deduct", json={"phone_number": phone_number()}, headers=bot_headers)

    assert response.status_code == 200
    assert response.json()["data"] == {"remaining_credits": 2}


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"phone_number": ""}, {"phone_number": None}])
async def test_deduct_requires_phone_number(async_client: AsyncClient, bot_headers: dict, body: dict) -> None:
    """Missing phone number is a 400 in the common envelope."""
    response = await async_client.post("/api/bot/deduct", json=body, headers=bot_headers)

    assert response.status_code == 400
    assert response.json() == {"status": "ERROR", "message": "Phone number is required"}


@pytest.mark.asyncio
async def test_missing_bot_secret_is_rejected(async_client: AsyncClient) -> None:
    """Calls without the header never reach the ledger."""
    response = await async_client.get(f"/api/bot/credits/{phone_number()}")

    assert response.status_code == 401
    assert response.json() == {"status": "ERROR", "message": "Missing x-bot-secret header"}


@pytest.mark.asyncio
async def test_wrong_bot_secret_is_rejected(async_client: AsyncClient) -> None:
    """A wrong secret is refused on every bot route."""
    headers = {"x-bot-secret": "not-the-secret"}

    credits = await async_client.get(f"/api/bot/credits/{phone_number()}", headers=headers)
    deduct = await async_client.post("/api/bot/deduct", json={"phone_number": phone_number()}, headers=headers)

    for response in (credits, deduct):
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid bot secret"


@pytest.mark.asyncio
async def test_unconfigured_bot_secret_fails_closed(async_client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    """Without a configured secret the bot routes are closed by default."""
    monkeypatch.setattr(settings, "bot_secret", None)

    response = await async_client.get(f"/api/bot/credits/{phone_number()}", headers={"x-bot-secret": "anything"})

    assert response.status_code == 401
    assert response.json()["message"] == "Bot authentication is not configured"


@pytest.mark.asyncio
async def test_explicit_bypass_allows_unauthenticated_calls(
    async_client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """BOT_AUTH_DISABLED opens the routes when no secret is configured."""
    monkeypatch.setattr(settings, "bot_secret", None)
    monkeypatch.setattr(settings, "bot_auth_disabled", True)

    response = await async_client.get(f"/api/bot/credits/{phone_number()}")

    assert response.status_code == 200
    assert response.json()["data"]["remaining_credits"] == 3


@pytest.mark.asyncio
async def test_bypass_is_ignored_when_secret_is_configured(
    async_client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A configured secret is always enforced."""
    monkeypatch.setattr(settings, "bot_auth_disabled", True)

    response = await async_client.get(f"/api/bot/credits/{phone_number()}")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_responses_carry_request_id(async_client: AsyncClient, bot_headers: dict) -> None:
    """A caller-supplied request id is echoed back."""
    headers = {**bot_headers, "x-request-id": "req-bot-42"}

    response = await async_client.get(f"/api/bot/credits/{phone_number()}", headers=headers)

    assert response.headers["x-request-id"] == "req-bot-42"
