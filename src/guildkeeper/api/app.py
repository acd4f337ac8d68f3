"""
Dashboard HTTP API.

A FastAPI application over the same stores the bot uses. Every route but
``/api/login`` requires a session cookie; unauthenticated calls get a bare
401. Not-found and server errors are answered as plain text.
"""
from __future__ import annotations

import secrets
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from guildkeeper.api.schemas import (
    NULLABLE_SETTINGS,
    BotStatusOut,
    CategorySummary,
    CommandStatOut,
    ExecuteCommandRequest,
    ExecuteCommandResponse,
    LoginRequest,
    ModerationLogOut,
    ServerOut,
    ServerUpdate,
    SettingsOut,
    SettingsUpdate,
    UserOut,
)
from guildkeeper.bot.bot_state import BotState
from guildkeeper.commands.registry import CommandRegistry
from guildkeeper.database.errors import SettingsNotFoundError, StoreError
from guildkeeper.datatypes.action_datatypes import ActionType, NewAuditEntry
from guildkeeper.datatypes.discord_datatypes import GuildID
from guildkeeper.repositories.audit_log_repo import DEFAULT_QUERY_LIMIT
from guildkeeper.util.logger import get_logger

if TYPE_CHECKING:
    from guildkeeper.configuration.app_configuration import AppConfig
    from guildkeeper.database.database import Database

logger = get_logger("dashboard_api")

SESSION_COOKIE = "guildkeeper_session"
DASHBOARD_USER_ID = 1
STATUS_COMMANDS_PER_CATEGORY = 5


def current_user(request: Request) -> Dict[str, Any]:
    """Session user, or a bare 401."""
    user = request.session.get("user")
    if not user:
        raise HTTPException(status_code=401)
    return user


def _guild_id_or_404(raw: str, detail: str) -> GuildID:
    guild_id = GuildID.parse(raw)
    if guild_id is None:
        raise HTTPException(status_code=404, detail=detail)
    return guild_id


def create_app(
    db: "Database",
    registry: CommandRegistry,
    state: BotState,
    config: "AppConfig",
    *,
    session_secret: Optional[str] = None,
) -> FastAPI:
    """
    Build the dashboard API.

    Args:
        db: Initialized database coordinator.
        registry: Command registry, for status and execute-command.
        state: Connection state reported by ``/api/bot/status``.
        config: Supplies the dashboard credentials.
        session_secret: Key signing the session cookie; read from the
            configuration when omitted.
    """
    app = FastAPI(title="Guildkeeper Dashboard API")
    app.add_middleware(
        SessionMiddleware,
        secret_key=session_secret or config.session_secret,
        session_cookie=SESSION_COOKIE,
        same_site="lax",
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> Response:
        if exc.status_code == 401:
            return Response(status_code=401)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(StoreError)
    async def store_error(request: Request, exc: StoreError) -> Response:
        logger.error("[DASHBOARD API] Store failure on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        return PlainTextResponse("Internal server error", status_code=500)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> Response:
        logger.error("[DASHBOARD API] Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return PlainTextResponse("Internal server error", status_code=500)

    # --- Authentication ---

    @app.post("/api/login", response_model=UserOut)
    async def login(body: LoginRequest, request: Request) -> UserOut:
        expected_password = config.dashboard_password
        if expected_password is None:
            logger.warning("[DASHBOARD API] Login attempted but DASHBOARD_PASSWORD is not set")
            raise HTTPException(status_code=401)

        username_ok = secrets.compare_digest(body.username.encode(), config.dashboard_username.encode())
        password_ok = secrets.compare_digest(body.password.encode(), expected_password.encode())
        if not (username_ok and password_ok):
            logger.info("[DASHBOARD API] Failed login for '%s'", body.username)
            raise HTTPException(status_code=401)

        user = UserOut(id=DASHBOARD_USER_ID, username=body.username)
        request.session["user"] = user.model_dump()
        logger.info("[DASHBOARD API] '%s' logged in", body.username)
        return user

    @app.post("/api/logout")
    async def logout(request: Request) -> Dict[str, Any]:
        request.session.clear()
        return {}

    @app.get("/api/user", response_model=UserOut)
    async def get_user(user: Dict[str, Any] = Depends(current_user)) -> UserOut:
        return UserOut.model_validate(user)

    # --- Servers ---

    @app.get("/api/servers", response_model=List[ServerOut])
    async def list_servers(user: Dict[str, Any] = Depends(current_user)) -> List[ServerOut]:
        return [ServerOut.model_validate(guild) for guild in await db.guilds.list()]

    @app.get("/api/servers/{server_id}", response_model=ServerOut)
    async def get_server(server_id: str, user: Dict[str, Any] = Depends(current_user)) -> ServerOut:
        guild = await db.guilds.get(_guild_id_or_404(server_id, "Server not found"))
        if guild is None:
            raise HTTPException(status_code=404, detail="Server not found")
        return ServerOut.model_validate(guild)

    @app.patch("/api/servers/{server_id}", response_model=ServerOut)
    async def update_server(
        server_id: str,
        body: ServerUpdate,
        user: Dict[str, Any] = Depends(current_user),
    ) -> ServerOut:
        guild_id = _guild_id_or_404(server_id, "Server not found")
        changes = {key: value for key, value in body.model_dump(exclude_unset=True).items()
                   if value is not None or key == "icon_url"}
        updated = await db.guilds.update(guild_id, changes)
        if updated is None:
            raise HTTPException(status_code=404, detail="Server not found")
        return ServerOut.model_validate(updated)

    @app.get("/api/servers/{server_id}/settings", response_model=SettingsOut)
    async def get_settings(server_id: str, user: Dict[str, Any] = Depends(current_user)) -> SettingsOut:
        settings = await db.settings.read(_guild_id_or_404(server_id, "Settings not found"))
        if settings is None:
            raise HTTPException(status_code=404, detail="Settings not found")
        return SettingsOut.model_validate(settings)

    @app.patch("/api/servers/{server_id}/settings", response_model=SettingsOut)
    async def update_settings(
        server_id: str,
        body: SettingsUpdate,
        user: Dict[str, Any] = Depends(current_user),
    ) -> SettingsOut:
        guild_id = _guild_id_or_404(server_id, "Settings not found")
        changes = {key: value for key, value in body.model_dump(exclude_unset=True).items()
                   if value is not None or key in NULLABLE_SETTINGS}
        try:
            updated = await db.settings.update(guild_id, changes)
        except SettingsNotFoundError:
            raise HTTPException(status_code=404, detail="Settings not found")
        logger.info("[DASHBOARD API] '%s' updated settings of guild %s: %s", user["username"], guild_id, sorted(changes))
        return SettingsOut.model_validate(updated)

    @app.get("/api/servers/{server_id}/moderation-logs", response_model=List[ModerationLogOut])
    async def moderation_logs(
        server_id: str,
        limit: int = Query(DEFAULT_QUERY_LIMIT),
        user: Dict[str, Any] = Depends(current_user),
    ) -> List[ModerationLogOut]:
        guild_id = GuildID.parse(server_id)
        if guild_id is None:
            return []
        return [ModerationLogOut.model_validate(entry) for entry in await db.audit_log.query(guild_id, limit)]

    @app.get("/api/servers/{server_id}/command-stats", response_model=List[CommandStatOut])
    async def command_stats(server_id: str, user: Dict[str, Any] = Depends(current_user)) -> List[CommandStatOut]:
        guild_id = GuildID.parse(server_id)
        if guild_id is None:
            return []
        return [CommandStatOut.model_validate(usage) for usage in await db.usage.query(guild_id)]

    # --- Bot ---

    @app.get("/api/bot/status", response_model=BotStatusOut)
    async def bot_status(user: Dict[str, Any] = Depends(current_user)) -> BotStatusOut:
        return BotStatusOut(
            status=state.status,
            command_count=len(registry),
            commands_by_category=[
                CategorySummary(
                    category=category,
                    count=len(commands),
                    commands=[command.name for command in commands[:STATUS_COMMANDS_PER_CATEGORY]],
                )
                for category, commands in registry.by_category().items()
            ],
        )

    @app.post("/api/bot/execute-command", response_model=ExecuteCommandResponse)
    async def execute_command(
        body: ExecuteCommandRequest,
        user: Dict[str, Any] = Depends(current_user),
    ) -> ExecuteCommandResponse:
        """Record a dashboard-issued command in the audit log and usage stats without running it."""
        command = registry.lookup(body.command)
        if command is None:
            raise HTTPException(status_code=404, detail="Command not found")
        guild_id = _guild_id_or_404(body.server_id, "Server not found")

        guild = await db.guilds.get(guild_id)
        invocation = " ".join([command.name, *body.args])
        await db.audit_log.append(NewAuditEntry(
            guild_id=guild_id,
            type=ActionType.COMMAND,
            moderator_id=str(user["id"]),
            moderator_name=user["username"],
            target_id=str(guild_id),
            target_name=guild.name if guild else str(guild_id),
            reason=f"Executed from dashboard: {invocation}",
        ))
        await db.usage.increment(guild_id, command.name, command.category)

        return ExecuteCommandResponse(
            success=True,
            message=f"Command {command.name} executed successfully",
            command=command.name,
            args=body.args,
            server_id=str(guild_id),
        )

    return app
