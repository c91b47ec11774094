"""
Sandbox profiles: YAML documents that choose which standard library names a
ScriptRunner exposes to scripts.

    name: chat-bot
    allow: [print, "+", "-"]
    aliases: {add: "+"}
    max_steps: 10000
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


class ProfileError(ValueError):
    """Raised for profiles that are not valid YAML or have the wrong shape."""


@dataclass
class Profile:
    name: str = "default"
    allow: Optional[List[str]] = None
    aliases: Dict[str, str] = field(default_factory=dict)
    max_steps: Optional[int] = None

    def select(self, available: Dict[str, Any]) -> Dict[str, Any]:
        """Filters available bindings through `allow`, then adds aliases."""
        if self.allow is None:
            chosen = dict(available)
        else:
            unknown = [n for n in self.allow if n not in available]
            if unknown:
                raise ProfileError(f"profile {self.name!r} allows unknown names: {', '.join(unknown)}")
            chosen = {n: available[n] for n in self.allow}
        for alias, target in self.aliases.items():
            if target not in chosen:
                raise ProfileError(f"alias {alias!r} targets {target!r}, which the profile does not expose")
            chosen[alias] = chosen[target]
        return chosen


def _str_list(value, key: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ProfileError(f"'{key}' must be a list of names")
    return list(value)


def profile_from_dict(data: Any) -> Profile:
    if data is None:
        return Profile()
    if not isinstance(data, dict):
        raise ProfileError("profile must be a mapping")
    unknown = set(data) - {"name", "allow", "aliases", "max_steps"}
    if unknown:
        raise ProfileError(f"unknown profile keys: {', '.join(sorted(unknown))}")

    allow = data.get("allow")
    if allow is not None:
        allow = _str_list(allow, "allow")

    aliases = data.get("aliases") or {}
    if not isinstance(aliases, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in aliases.items()
    ):
        raise ProfileError("'aliases' must map names to names")

    max_steps = data.get("max_steps")
    if max_steps is not None and (isinstance(max_steps, bool) or not isinstance(max_steps, int) or max_steps < 1):
        raise ProfileError("'max_steps' must be a positive integer")

    return Profile(
        name=str(data.get("name", "default")),
        allow=allow,
        aliases=dict(aliases),
        max_steps=max_steps,
    )


def parse_profile(text: str) -> Profile:
    """Parses a profile from YAML text."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ProfileError(f"invalid profile YAML: {e}") from e
    return profile_from_dict(data)


def load_profile(path: str | Path) -> Profile:
    """Reads and parses a profile file."""
    p = Path(path)
    profile = parse_profile(p.read_text(encoding="utf-8"))
    if profile.name == "default":
        profile.name = p.stem
    return profile
