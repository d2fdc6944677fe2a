"""Data models for short links."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any


UNKNOWN_IP = "unknown"
UNKNOWN_USER_AGENT = "unknown"
DIRECT_REFERRER = "direct"


def _parse_datetime(value: Any) -> Optional[datetime]:
    """Accept a datetime or ISO string; naive values are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class ClickEvent:
    """One recorded visit to a short link."""

    timestamp: datetime
    ip: str = UNKNOWN_IP
    user_agent: str = UNKNOWN_USER_AGENT
    referrer: str = DIRECT_REFERRER

    @classmethod
    def build(
        cls,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
        referrer: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> "ClickEvent":
        """Create an event, replacing missing fields with sentinels."""
        return cls(
            timestamp=timestamp or datetime.now(timezone.utc),
            ip=ip or UNKNOWN_IP,
            user_agent=user_agent or UNKNOWN_USER_AGENT,
            referrer=referrer or DIRECT_REFERRER,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "ip": self.ip,
            "user_agent": self.user_agent,
            "referrer": self.referrer,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClickEvent":
        return cls(
            timestamp=_parse_datetime(data["timestamp"]),
            ip=data.get("ip") or UNKNOWN_IP,
            user_agent=data.get("user_agent") or UNKNOWN_USER_AGENT,
            referrer=data.get("referrer") or DIRECT_REFERRER,
        )


@dataclass
class ShortLink:
    """A short link record as held by the store."""

    id: str
    original_url: str
    code: str
    created_at: datetime
    custom_alias: Optional[str] = None
    owner_id: Optional[str] = None
    click_count: int = 0
    click_history: List[ClickEvent] = field(default_factory=list)
    expires_at: Optional[datetime] = None
    is_active: bool = True
    updated_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True when an expiry is set and ``now`` has reached it."""
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return self.expires_at <= now

    def matches_lookup_key(self, key: str) -> bool:
        return self.code == key or (self.custom_alias is not None and self.custom_alias == key)

    @property
    def last_clicked(self) -> Optional[datetime]:
        if not self.click_history:
            return None
        return self.click_history[-1].timestamp

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "original_url": self.original_url,
            "code": self.code,
            "custom_alias": self.custom_alias,
            "owner_id": self.owner_id,
            "click_count": self.click_count,
            "click_history": [event.to_dict() for event in self.click_history],
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ShortLink":
        """Create from dictionary (or a database row mapping)."""
        history = data.get("click_history") or []
        return cls(
            id=data["id"],
            original_url=data["original_url"],
            code=data["code"],
            created_at=_parse_datetime(data["created_at"]),
            custom_alias=data.get("custom_alias"),
            owner_id=data.get("owner_id"),
            click_count=data.get("click_count", 0),
            click_history=[
                event if isinstance(event, ClickEvent) else ClickEvent.from_dict(event)
                for event in history
            ],
            expires_at=_parse_datetime(data.get("expires_at")),
            is_active=data.get("is_active", True),
            updated_at=_parse_datetime(data.get("updated_at")),
        )


@dataclass
class LinkPage:
    """One page of an owner's links."""

    items: List[ShortLink]
    total: int
    current_page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total // self.limit)
