"""Stored record models for profiles and sources.

Profiles and sources are persisted as camelCase JSON documents by the
management interface. These models validate them on the way in and expose
snake_case attributes to the rest of the application.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .constants import HTTP_SCHEME_RE

logger = logging.getLogger(__name__)

ExpiryValue = Union[str, int, float]
SORT_KEYS = ("region", "protocol", "name")


class StoredModel(BaseModel):
    """Base for records read from the key-value store."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class SourceKind(str, Enum):
    """How a source's nodes are obtained."""

    REMOTE_SUBSCRIPTION = "remote_subscription"
    MANUAL_NODE = "manual_node"

    @classmethod
    def classify(cls, url: str) -> "SourceKind":
        """Remote subscriptions are plain HTTP(S) links; anything else is a node link."""
        if HTTP_SCHEME_RE.match(url or ""):
            return cls.REMOTE_SUBSCRIPTION
        return cls.MANUAL_NODE


class Source(StoredModel):
    """A remote subscription feed or a manually entered node."""

    id: str
    name: str = ""
    url: str = ""
    enabled: bool = False
    exclude: Optional[str] = None
    custom_user_agent: Optional[str] = None

    _kind: SourceKind = PrivateAttr()

    def model_post_init(self, __context: Any) -> None:
        self._kind = SourceKind.classify(self.url)

    @property
    def kind(self) -> SourceKind:
        return self._kind

    @property
    def is_remote(self) -> bool:
        return self._kind is SourceKind.REMOTE_SUBSCRIPTION


class AccessToken(StoredModel):
    """A secondary, independently expirable credential for a profile."""

    token: Optional[str] = None
    enabled: Optional[bool] = True
    expires_at: Optional[ExpiryValue] = None
    name: Optional[str] = None

    @property
    def is_eligible(self) -> bool:
        return self.enabled is not False and bool(self.token)


class RenameTemplate(StoredModel):
    enabled: bool = True
    template: Optional[str] = None
    index_width: int = 2

    @field_validator("index_width", mode="before")
    @classmethod
    def _clamp_width(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, int):
            return 2
        return max(value, 1)


class RenameSettings(StoredModel):
    template: RenameTemplate = Field(default_factory=RenameTemplate)


class DedupSettings(StoredModel):
    enabled: bool = False


class SortSettings(StoredModel):
    enabled: bool = False
    keys: List[Literal["region", "protocol", "name"]] = Field(
        default_factory=lambda: ["region", "protocol"]
    )

    @field_validator("keys", mode="before")
    @classmethod
    def _known_keys(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return ["region", "protocol"]
        return [key for key in value if key in SORT_KEYS]


class NodeTransformSettings(StoredModel):
    """Per-profile configuration of the rename/reorder pipeline."""

    enabled: bool = False
    enable_emoji: bool = True
    rename: RenameSettings = Field(default_factory=RenameSettings)
    dedup: DedupSettings = Field(default_factory=DedupSettings)
    sort: SortSettings = Field(default_factory=SortSettings)


class Profile(StoredModel):
    """A subscription group bundling selected sources under one credential."""

    id: str
    name: str = ""
    custom_id: Optional[str] = None
    enabled: bool = False
    expires_at: Optional[ExpiryValue] = None
    access_tokens: List[AccessToken] = Field(default_factory=list)
    subscriptions: List[str] = Field(default_factory=list)
    manual_nodes: List[str] = Field(default_factory=list)
    node_transform: Optional[NodeTransformSettings] = None

    @field_validator("subscriptions", "manual_nodes", mode="before")
    @classmethod
    def _list_or_empty(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return []
        return value

    @field_validator("access_tokens", mode="before")
    @classmethod
    def _valid_tokens(cls, value: Any) -> List[AccessToken]:
        if not isinstance(value, list):
            return []
        tokens = []
        for index, item in enumerate(value):
            try:
                tokens.append(AccessToken.model_validate(item))
            except ValidationError:
                logger.warning("Ignoring malformed access token #%d", index)
        return tokens

    @field_validator("node_transform", mode="wrap")
    @classmethod
    def _transform_or_none(
        cls, value: Any, handler: ValidatorFunctionWrapHandler
    ) -> Optional[NodeTransformSettings]:
        try:
            return handler(value)
        except ValidationError as exc:
            logger.warning("Ignoring invalid nodeTransform settings: %d errors", exc.error_count())
            return None

    def eligible_tokens(self) -> List[AccessToken]:
        return [t for t in self.access_tokens if t.is_eligible]
