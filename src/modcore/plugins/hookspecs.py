"""Pluggy hook specifications for contributing extensions to a core."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from modcore.kernel.types import Extension

hookspec = pluggy.HookspecMarker("modcore")
hookimpl = pluggy.HookimplMarker("modcore")


class ModcoreHookSpec:
    """Hook specifications for the modcore plugin system."""

    @hookspec
    def modcore_extensions(self) -> list[Extension] | None:
        """Return extensions to ``use()`` on cores built by ``build_core``."""
