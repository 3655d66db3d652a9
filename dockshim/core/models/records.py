"""
Normalised records — containers, images, builder and system status.

Backends disagree on field names and casing, so each record is built
from a raw key/value map with ordered synonym lists per field. Missing
or renamed fields degrade to sensible defaults instead of failing.

The synonym tables are plain module-level data so they can be tested
and extended without touching the mapping code.
"""

from __future__ import annotations

import uuid
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from dockshim.core.services.json_output import decode_object, first_bool, first_string

ContainerState = Literal["running", "stopped", "unknown"]


# ── Synonym tables ──────────────────────────────────────────────────

CONTAINER_KEYS: dict[str, tuple[str, ...]] = {
    "id": ("id", "containerid", "container_id", "uuid"),
    "name": ("name", "names", "container", "containername"),
    "image": ("image", "image_ref", "imageref", "imageid"),
    "status": ("status", "state", "runningstate", "health"),
    "created_at": ("createdat", "created_at", "created", "age", "createdsince", "runningfor"),
    "ports": ("ports", "publishedports", "publish", "published"),
    "ip_address": ("ip", "ipaddress", "ip_address", "address"),
}

IMAGE_KEYS: dict[str, tuple[str, ...]] = {
    "id": ("id", "imageid", "digest", "sha", "hash"),
    "repository": ("repository", "repo", "name", "image", "reference"),
    "tag": ("tag", "tags"),
    "size": ("size", "virtualsize", "disk"),
    "created_at": ("createdat", "created_at", "created", "age", "createdsince"),
}

STATUS_RUNNING_KEYS = ("running", "isrunning", "active", "started")
STATUS_MESSAGE_KEYS = ("message", "status", "state")


def classify_state(text: str) -> ContainerState:
    """Map free-text status to running / stopped / unknown."""
    lowered = text.strip().lower()
    if "running" in lowered or lowered in ("run", "up"):
        return "running"
    if "stopped" in lowered or "exited" in lowered or lowered in ("stop", "down"):
        return "stopped"
    return "unknown"


def _new_id() -> str:
    return str(uuid.uuid4()).upper()


# ── Containers & images ─────────────────────────────────────────────


class ContainerRecord(BaseModel):
    """One container as reported by a listing call."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    image: str
    status: str = ""
    state: ContainerState = "unknown"
    created_at: str | None = None
    ports: str | None = None
    ip_address: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> ContainerRecord:
        cid = first_string(raw, CONTAINER_KEYS["id"]) or _new_id()
        status = first_string(raw, CONTAINER_KEYS["status"]) or ""

        state = classify_state(status)
        if state == "unknown":
            # Docker puts "Up 2 hours" in Status and the category in State.
            state = classify_state(first_string(raw, ("state",)) or "")

        return cls(
            id=cid,
            name=first_string(raw, CONTAINER_KEYS["name"]) or cid[:12],
            image=first_string(raw, CONTAINER_KEYS["image"]) or "(unknown)",
            status=status,
            state=state,
            created_at=first_string(raw, CONTAINER_KEYS["created_at"]),
            ports=first_string(raw, CONTAINER_KEYS["ports"]),
            ip_address=first_string(raw, CONTAINER_KEYS["ip_address"]),
            raw=raw,
        )


class ImageRecord(BaseModel):
    """One local image as reported by a listing call."""

    model_config = ConfigDict(frozen=True)

    id: str
    repository: str = ""
    tag: str = ""
    size: str | None = None
    created_at: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def reference(self) -> str:
        """``repo:tag``, bare ``repo`` without a tag, or the id without a repo."""
        if not self.repository:
            return self.id
        if not self.tag:
            return self.repository
        return f"{self.repository}:{self.tag}"

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> ImageRecord:
        return cls(
            id=first_string(raw, IMAGE_KEYS["id"]) or _new_id(),
            repository=first_string(raw, IMAGE_KEYS["repository"]) or "",
            tag=first_string(raw, IMAGE_KEYS["tag"]) or "",
            size=first_string(raw, IMAGE_KEYS["size"]),
            created_at=first_string(raw, IMAGE_KEYS["created_at"]),
            raw=raw,
        )


# ── Status ──────────────────────────────────────────────────────────


def _default_message(running: bool) -> str:
    return "Running" if running else "Stopped"


class SystemStatus(BaseModel):
    """Whether the backend's system services are up."""

    model_config = ConfigDict(frozen=True)

    is_running: bool = False
    message: str = ""

    @classmethod
    def unknown(cls) -> SystemStatus:
        return cls(is_running=False, message="Unknown")

    @classmethod
    def from_output(cls, stdout: str) -> SystemStatus:
        obj = decode_object(stdout)
        if obj is not None:
            running = first_bool(obj, STATUS_RUNNING_KEYS) or False
            message = first_string(obj, STATUS_MESSAGE_KEYS) or _default_message(running)
            return cls(is_running=running, message=message)

        lower = stdout.lower()
        running = (
            ("running" in lower or "started" in lower)
            and "not running" not in lower
            and "stopped" not in lower
        )
        text = stdout.strip()
        return cls(is_running=running, message=text or _default_message(running))


class BuilderStatus(BaseModel):
    """Whether the image builder is up; keeps the decoded JSON when there was any."""

    model_config = ConfigDict(frozen=True)

    is_running: bool = False
    message: str = ""
    raw: Any | None = None

    @classmethod
    def from_output(cls, stdout: str) -> BuilderStatus:
        obj = decode_object(stdout)
        if obj is not None:
            running = first_bool(obj, STATUS_RUNNING_KEYS) or False
            message = first_string(obj, STATUS_MESSAGE_KEYS) or _default_message(running)
            return cls(is_running=running, message=message, raw=obj)

        lower = stdout.lower()
        running = "running" in lower and "stopped" not in lower
        text = stdout.strip()
        return cls(is_running=running, message=text or _default_message(running))
