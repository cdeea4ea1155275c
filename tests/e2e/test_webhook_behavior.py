import pytest
from aiohttp.test_utils import TestClient, TestServer

from relay_bot import texts
from relay_bot.bot import create_dispatcher
from relay_bot.config import BOT_SECRET, WEBHOOK_PATH
from relay_bot.webhook import SECRET_HEADER, create_app
from tests.e2e.utils import RecordingSession, build_bot, wait_for_calls


@pytest.fixture
def session():
    return RecordingSession()


@pytest.fixture
async def client(fake_redis, session):
    bot = build_bot(session)
    app = await create_app(bot=bot, dp=create_dispatcher())
    async with TestClient(TestServer(app)) as test_client:
        yield test_client


@pytest.mark.asyncio
async def test_webhook_rejects_wrong_secret(client, session, update_factory, message_factory):
    update = update_factory(message_factory(user_id=100, text="/start"))
    payload = update.model_dump(mode="json", by_alias=True, exclude_none=True)

    resp = await client.post(WEBHOOK_PATH, json=payload, headers={SECRET_HEADER: "wrong"})
    assert resp.status == 403

    resp = await client.post(WEBHOOK_PATH, json=payload)
    assert resp.status == 403

    resp = await client.post(WEBHOOK_PATH, json=payload, headers={SECRET_HEADER: BOT_SECRET + "x"})
    assert resp.status == 403

    resp = await client.post(WEBHOOK_PATH, json=payload, headers={SECRET_HEADER: BOT_SECRET[:-1]})
    assert resp.status == 403

    assert session.calls == []


@pytest.mark.asyncio
async def test_webhook_acknowledges_and_processes_update(client, session, update_factory, message_factory):
    update = update_factory(message_factory(user_id=100, text="/start"))
    payload = update.model_dump(mode="json", by_alias=True, exclude_none=True)

    resp = await client.post(WEBHOOK_PATH, json=payload, headers={SECRET_HEADER: BOT_SECRET})
    assert resp.status == 200

    # Приветствие + капча отправляются в фоне после ответа 200
    await wait_for_calls(session, count=2)
    messages = session.sent_texts(100)
    assert messages[0] == texts.DEFAULT_START_MESSAGE
    assert "= ?" in messages[1]


@pytest.mark.asyncio
async def test_register_webhook_sets_secret_and_commands(client, session):
    resp = await client.get("/registerWebhook")

    assert resp.status == 200
    assert await resp.text() == "Ok"

    set_webhook = session.calls_of("setWebhook")[0]
    assert set_webhook.url.endswith(WEBHOOK_PATH)
    assert set_webhook.secret_token == BOT_SECRET

    commands = session.calls_of("setMyCommands")[0].commands
    assert [command.command for command in commands] == ["block", "unblock", "checkblock", "captcha"]


@pytest.mark.asyncio
async def test_unregister_webhook(client, session):
    resp = await client.get("/unRegisterWebhook")

    assert await resp.text() == "Ok"
    assert len(session.calls_of("deleteWebhook")) == 1


@pytest.mark.asyncio
async def test_health_check(client):
    resp = await client.get("/health")

    assert resp.status == 200
    assert (await resp.json())["status"] == "ok"
