"""Normalization of project member rows into one canonical shape."""

from typing import Any, Iterable, Mapping

from taskview.errors import ValidationError
from taskview.models import TeamMember

MEMBER_KIND_JOINED = "joined"
MEMBER_KIND_FLAT = "flat"

_UNKNOWN_NAME = "Unknown User"
_DEFAULT_ROLE = "member"


def _text(value: Any, default: str) -> str:
    return default if value is None or value == "" else str(value)


def _optional_text(value: Any) -> str | None:
    return None if value is None or value == "" else str(value)


def normalize_member(raw: Mapping[str, Any]) -> TeamMember:
    """Map a tagged member row to a TeamMember.

    Args:
        raw: ``{"kind": "joined", ...}`` with the profile nested under
            ``profiles``, or ``{"kind": "flat", ...}`` with ``user_name``,
            ``user_email`` and ``user_avatar_url`` columns

    Raises:
        ValidationError: Unknown kind or missing user id
    """
    kind = raw.get("kind")
    user_id = raw.get("user_id")

    if kind == MEMBER_KIND_JOINED:
        profile = raw.get("profiles") or {}
        if not isinstance(profile, Mapping):
            raise ValidationError("Joined member 'profiles' must be an object")
        if user_id is None:
            user_id = profile.get("id")
        name = profile.get("name")
        email = profile.get("email")
        avatar_url = profile.get("avatar_url")
    elif kind == MEMBER_KIND_FLAT:
        name = raw.get("user_name")
        email = raw.get("user_email")
        avatar_url = raw.get("user_avatar_url")
    else:
        raise ValidationError(f"Unknown member kind: {kind!r}")

    if user_id is None or user_id == "":
        raise ValidationError("Member missing required field: user_id")

    return TeamMember(
        user_id=str(user_id),
        project_id=_optional_text(raw.get("project_id")),
        name=_text(name, _UNKNOWN_NAME),
        email=_text(email, ""),
        avatar_url=_optional_text(avatar_url),
        role=_text(raw.get("role"), _DEFAULT_ROLE),
    )


def group_members_by_project(raws: Iterable[Mapping[str, Any]]) -> dict[str, list[TeamMember]]:
    """Normalize member rows and group them by project id, in input order."""
    grouped: dict[str, list[TeamMember]] = {}
    for raw in raws:
        member = normalize_member(raw)
        if member.project_id is None:
            continue
        grouped.setdefault(member.project_id, []).append(member)
    return grouped
