"""Tests for the dashboard HTTP API."""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from guildkeeper.api.app import create_app
from guildkeeper.bot.bot_state import BotState
from guildkeeper.database.errors import StoreError
from guildkeeper.datatypes.action_datatypes import ActionType, NewAuditEntry
from guildkeeper.datatypes.discord_datatypes import GuildID

from conftest import GUILD_ID

SERVER = str(GUILD_ID)


@pytest.fixture
def state():
    return BotState()


@pytest.fixture
async def anonymous(db, registry, app_settings, state):
    app = create_app(db, registry, state, app_settings, session_secret="test-secret")
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
async def client(anonymous):
    response = await anonymous.post("/api/login", json={"username": "admin", "password": "hunter2"})
    assert response.status_code == 200
    return anonymous


class TestAuthentication:
    async def test_login(self, anonymous):
        response = await anonymous.post("/api/login", json={"username": "admin", "password": "hunter2"})
        assert response.status_code == 200
        assert response.json() == {"id": 1, "username": "admin", "isAdmin": True}
        assert "guildkeeper_session" in response.cookies

    async def test_wrong_password(self, anonymous):
        response = await anonymous.post("/api/login", json={"username": "admin", "password": "nope"})
        assert response.status_code == 401
        assert response.content == b""

    async def test_login_disabled_without_password(self, anonymous, app_settings):
        app_settings.dashboard_password = None
        response = await anonymous.post("/api/login", json={"username": "admin", "password": ""})
        assert response.status_code == 401

    @pytest.mark.parametrize(
        "method, path",
        [
            ("GET", "/api/user"),
            ("GET", "/api/servers"),
            ("GET", f"/api/servers/{SERVER}"),
            ("GET", f"/api/servers/{SERVER}/settings"),
            ("GET", f"/api/servers/{SERVER}/moderation-logs"),
            ("GET", f"/api/servers/{SERVER}/command-stats"),
            ("GET", "/api/bot/status"),
        ],
    )
    async def test_routes_require_session(self, anonymous, method, path):
        response = await anonymous.request(method, path)
        assert response.status_code == 401
        assert response.content == b""

    async def test_current_user_and_logout(self, client):
        assert (await client.get("/api/user")).json()["username"] == "admin"

        response = await client.post("/api/logout")
        assert response.status_code == 200
        assert response.json() == {}
        assert (await client.get("/api/user")).status_code == 401


class TestServers:
    async def test_list(self, client, registered_guild):
        [server] = (await client.get("/api/servers")).json()
        assert server["id"] == SERVER
        assert server["name"] == "Test Guild"
        assert server["memberCount"] == 42
        assert server["prefix"] == "!"
        assert "addedAt" in server and "iconUrl" in server

    async def test_get_unknown(self, client):
        response = await client.get("/api/servers/123")
        assert response.status_code == 404
        assert response.text == "Server not found"
        assert response.headers["content-type"].startswith("text/plain")

    async def test_get_malformed_id(self, client):
        assert (await client.get("/api/servers/not-a-number")).status_code == 404

    async def test_patch_prefix(self, client, db, registered_guild):
        response = await client.patch(f"/api/servers/{SERVER}", json={"prefix": "?"})
        assert response.status_code == 200
        assert response.json()["prefix"] == "?"
        assert response.json()["name"] == "Test Guild"
        assert (await db.guilds.get(GUILD_ID)).prefix == "?"

    async def test_patch_clears_icon(self, client, db, registered_guild):
        await db.guilds.update(GUILD_ID, {"icon_url": "https://cdn/icon.png"})
        response = await client.patch(f"/api/servers/{SERVER}", json={"iconUrl": None})
        assert response.json()["iconUrl"] is None

    async def test_patch_rejects_empty_prefix(self, client, registered_guild):
        response = await client.patch(f"/api/servers/{SERVER}", json={"prefix": ""})
        assert response.status_code == 422

    async def test_patch_unknown(self, client):
        response = await client.patch("/api/servers/123", json={"name": "x"})
        assert response.status_code == 404

    async def test_store_failure_is_500(self, client, db, monkeypatch):
        monkeypatch.setattr(db.guilds, "list", AsyncMock(side_effect=StoreError("database is locked")))
        response = await client.get("/api/servers")
        assert response.status_code == 500
        assert response.text == "Internal server error"


class TestSettings:
    async def test_get(self, client, registered_guild):
        body = (await client.get(f"/api/servers/{SERVER}/settings")).json()
        assert body["serverId"] == SERVER
        assert body["banCommandCooldown"] == 10
        assert body["gamblingEnabled"] is True
        assert body["modRoleId"] is None
        assert "guildId" not in body

    async def test_get_missing(self, client):
        response = await client.get(f"/api/servers/{SERVER}/settings")
        assert response.status_code == 404
        assert response.text == "Settings not found"

    async def test_patch_merges(self, client, db, registered_guild):
        response = await client.patch(
            f"/api/servers/{SERVER}/settings",
            json={"gamblingEnabled": False, "banCommandCooldown": 30, "modRoleId": "77"},
        )
        body = response.json()
        assert (body["gamblingEnabled"], body["banCommandCooldown"], body["modRoleId"]) == (False, 30, "77")
        assert body["antiSpam"] is False
        assert (await db.settings.read(GUILD_ID)).ban_command_cooldown == 30

    async def test_patch_null_clears_only_nullable_fields(self, client, db, registered_guild):
        await db.settings.update(GUILD_ID, {"mod_role_id": "77"})
        body = (await client.patch(
            f"/api/servers/{SERVER}/settings",
            json={"modRoleId": None, "gamblingEnabled": None},
        )).json()
        assert body["modRoleId"] is None
        assert body["gamblingEnabled"] is True

    async def test_patch_missing(self, client):
        response = await client.patch(f"/api/servers/{SERVER}/settings", json={"antiSpam": True})
        assert response.status_code == 404
        assert response.text == "Settings not found"


class TestLogsAndStats:
    async def test_moderation_logs(self, client, db):
        for target in ("first", "second"):
            await db.audit_log.append(NewAuditEntry(
                guild_id=GuildID(GUILD_ID), type=ActionType.KICK, moderator_id="1",
                moderator_name="Mod", target_id="2", target_name=target, reason=None,
            ))

        logs = (await client.get(f"/api/servers/{SERVER}/moderation-logs")).json()
        assert [entry["targetName"] for entry in logs] == ["second", "first"]
        assert logs[0]["type"] == "kick"
        assert logs[0]["serverId"] == SERVER
        assert logs[0]["reason"] is None

        limited = (await client.get(f"/api/servers/{SERVER}/moderation-logs", params={"limit": 1})).json()
        assert len(limited) == 1

    async def test_logs_for_malformed_id(self, client):
        assert (await client.get("/api/servers/abc/moderation-logs")).json() == []

    async def test_command_stats(self, client, db):
        await db.usage.increment(GUILD_ID, "ping", "utility")
        await db.usage.increment(GUILD_ID, "ping", "utility")

        [stat] = (await client.get(f"/api/servers/{SERVER}/command-stats")).json()
        assert stat["command"] == "ping"
        assert stat["category"] == "utility"
        assert stat["usageCount"] == 2
        assert stat["serverId"] == SERVER
        assert "lastUsed" in stat


HUGE_ID = "9" * 25


class TestOutOfRangeInput:
    @pytest.mark.parametrize(("method", "path", "body", "message"), [
        ("GET", f"/api/servers/{HUGE_ID}", None, "Server not found"),
        ("PATCH", f"/api/servers/{HUGE_ID}", {"name": "x"}, "Server not found"),
        ("GET", f"/api/servers/{HUGE_ID}/settings", None, "Settings not found"),
        ("PATCH", f"/api/servers/{HUGE_ID}/settings", {"antiSpam": True}, "Settings not found"),
        ("POST", "/api/bot/execute-command", {"serverId": HUGE_ID, "command": "ping"}, "Server not found"),
    ])
    async def test_oversized_ids_are_not_found(self, client, method, path, body, message):
        response = await client.request(method, path, json=body)
        assert response.status_code == 404
        assert response.text == message

    @pytest.mark.parametrize("suffix", ["moderation-logs", "command-stats"])
    async def test_oversized_ids_have_no_history(self, client, suffix):
        response = await client.get(f"/api/servers/{HUGE_ID}/{suffix}")
        assert response.status_code == 200
        assert response.json() == []

    async def test_huge_log_limit_is_capped(self, client, db):
        await db.audit_log.append(NewAuditEntry(
            guild_id=GuildID(GUILD_ID), type=ActionType.WARN, moderator_id="1",
            moderator_name="Mod", target_id="2", target_name="t", reason=None,
        ))
        response = await client.get(f"/api/servers/{SERVER}/moderation-logs", params={"limit": "9" * 25})
        assert response.status_code == 200
        assert len(response.json()) == 1

    async def test_oversized_cooldown_is_rejected(self, client, db, registered_guild):
        response = await client.patch(f"/api/servers/{SERVER}/settings", json={"banCommandCooldown": 10 ** 20})
        assert response.status_code == 422
        assert (await db.settings.read(GUILD_ID)).ban_command_cooldown == 10

    async def test_oversized_member_count_is_rejected(self, client, registered_guild):
        response = await client.patch(f"/api/servers/{SERVER}", json={"memberCount": 10 ** 20})
        assert response.status_code == 422


class TestBot:
    async def test_status(self, client, state):
        body = (await client.get("/api/bot/status")).json()
        assert body["status"] == "offline"
        assert body["commandCount"] == 15
        categories = {c["category"]: c for c in body["commandsByCategory"]}
        assert set(categories) == {"moderation", "gambling", "utility"}
        assert categories["moderation"]["count"] == 5
        assert categories["moderation"]["commands"] == ["ban", "kick", "warn", "mute", "clear"]

        state.mark_connected()
        assert (await client.get("/api/bot/status")).json()["status"] == "online"

    async def test_execute_command_is_audited(self, client, db, registered_guild):
        response = await client.post(
            "/api/bot/execute-command",
            json={"serverId": SERVER, "command": "ping", "args": ["now"]},
        )
        assert response.json() == {
            "success": True,
            "message": "Command ping executed successfully",
            "command": "ping",
            "args": ["now"],
            "serverId": SERVER,
        }

        [entry] = await db.audit_log.query(GUILD_ID)
        assert entry.type is ActionType.COMMAND
        assert entry.moderator_name == "admin"
        assert entry.target_name == "Test Guild"
        assert entry.reason == "Executed from dashboard: ping now"

        [usage] = await db.usage.query(GUILD_ID)
        assert (usage.command, usage.usage_count) == ("ping", 1)

    async def test_execute_unknown_command(self, client, db):
        response = await client.post("/api/bot/execute-command", json={"serverId": SERVER, "command": "nuke"})
        assert response.status_code == 404
        assert response.text == "Command not found"
        assert await db.audit_log.query(GUILD_ID) == []
