"""Request and response bodies of the dashboard API (camelCase on the wire)."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from guildkeeper.datatypes.guild_datatypes import MAX_BAN_COOLDOWN_SECONDS, MAX_MEMBER_COUNT

# Snowflakes and enum values leave the API as plain strings.
Stringified = Annotated[str, BeforeValidator(str)]


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserOut(ApiModel):
    id: int
    username: str
    is_admin: bool = True


class LoginRequest(ApiModel):
    username: str
    password: str


class ServerOut(ApiModel):
    id: Stringified
    name: str
    icon_url: Optional[str] = None
    member_count: int = 0
    prefix: str
    added_at: Optional[datetime] = None


class ServerUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    icon_url: Optional[str] = None
    member_count: Optional[int] = Field(default=None, ge=0, le=MAX_MEMBER_COUNT)
    prefix: Optional[str] = Field(default=None, min_length=1)


class SettingsOut(ApiModel):
    id: int
    server_id: Stringified = Field(
        validation_alias=AliasChoices("guild_id", "serverId", "server_id"),
        serialization_alias="serverId",
    )
    mod_role_id: Optional[str] = None
    admin_role_id: Optional[str] = None
    auto_mod_enabled: bool
    anti_spam: bool
    link_filter: bool
    profanity_filter: bool
    auto_warn: bool
    ban_message_template: Optional[str] = None
    ban_command_cooldown: int
    welcome_message: Optional[str] = None
    gambling_enabled: bool


class SettingsUpdate(ApiModel):
    mod_role_id: Optional[str] = None
    admin_role_id: Optional[str] = None
    auto_mod_enabled: Optional[bool] = None
    anti_spam: Optional[bool] = None
    link_filter: Optional[bool] = None
    profanity_filter: Optional[bool] = None
    auto_warn: Optional[bool] = None
    ban_message_template: Optional[str] = None
    ban_command_cooldown: Optional[int] = Field(default=None, ge=0, le=MAX_BAN_COOLDOWN_SECONDS)
    welcome_message: Optional[str] = None
    gambling_enabled: Optional[bool] = None


# Settings a client may explicitly clear by sending null.
NULLABLE_SETTINGS = frozenset({"mod_role_id", "admin_role_id", "ban_message_template", "welcome_message"})


class ModerationLogOut(ApiModel):
    id: int
    server_id: Stringified = Field(
        validation_alias=AliasChoices("guild_id", "serverId", "server_id"),
        serialization_alias="serverId",
    )
    type: Stringified
    moderator_id: str
    moderator_name: str
    target_id: str
    target_name: str
    reason: Optional[str] = None
    timestamp: datetime


class CommandStatOut(ApiModel):
    id: int
    server_id: Stringified = Field(
        validation_alias=AliasChoices("guild_id", "serverId", "server_id"),
        serialization_alias="serverId",
    )
    command: str
    category: str
    usage_count: int
    last_used: datetime


class CategorySummary(ApiModel):
    category: str
    count: int
    commands: List[str]


class BotStatusOut(ApiModel):
    status: str
    command_count: int
    commands_by_category: List[CategorySummary]


class ExecuteCommandRequest(ApiModel):
    server_id: Stringified
    command: str = Field(min_length=1)
    args: List[str] = Field(default_factory=list)


class ExecuteCommandResponse(ApiModel):
    success: bool
    message: str
    command: str
    args: List[str]
    server_id: str
