"""Syntactic check for npm package names given as include sources."""

from __future__ import annotations

from pageroots.errors import Check


def is_npm_name(name: str) -> bool:
    """
    Accept `pkg` and `@scope/pkg`. Rejects anything that looks like a path or a
    glob (dots, backslashes, extra slashes). This is not a full registry name check.
    """
    if "." in name:
        return False
    if "\\" in name:
        return False
    if "/" not in name:
        return True
    return len(name.split("/")) == 2 and name.startswith("@")


def check_npm_name(name: str) -> Check:
    if is_npm_name(name):
        return Check.ok()
    return Check.usage(
        f"Wrong pageroots config `include`: the string `{name}` is not a valid npm package name."
    )
