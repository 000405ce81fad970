"""
Component testing configuration.

Values come from code (``ComponentTestingConfig(...)``) and can be overridden
from the environment with ``from_env``:

    WEBRUN_AUTO_VRT                  "1"/"true"/"yes"/"on" enables screenshot capture
    WEBRUN_INITIAL_WAIT_FOR_ELEMENT  selector awaited after each render
    WEBRUN_SCREENSHOT_DIR            output directory for captures
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field

from .constants import DEFAULT_INTERVAL_MS, DEFAULT_SCREENSHOT_DIR, DEFAULT_TIMEOUT_MS
from .render import RenderContext

_TRUTHY = {"1", "true", "yes", "on"}


class ComponentTestingConfig(BaseModel):
    """Settings shared by render, expect and the pytest fixtures"""

    stylesheets: list[str] = Field(default_factory=list)
    scripts: list[str] = Field(default_factory=list)
    global_styles: str = ""
    import_map: dict[str, dict] | None = None
    auto_vrt: bool = False
    initial_wait_for_element: str | None = None
    screenshot_dir: str = DEFAULT_SCREENSHOT_DIR
    default_timeout_ms: float = Field(DEFAULT_TIMEOUT_MS, ge=0)
    default_interval_ms: float = Field(DEFAULT_INTERVAL_MS, ge=0)

    @classmethod
    def from_env(
        cls,
        base: ComponentTestingConfig | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> ComponentTestingConfig:
        env = os.environ if environ is None else environ
        data = (base or cls()).model_dump()

        if "WEBRUN_AUTO_VRT" in env:
            data["auto_vrt"] = env["WEBRUN_AUTO_VRT"].strip().lower() in _TRUTHY
        if env.get("WEBRUN_INITIAL_WAIT_FOR_ELEMENT"):
            data["initial_wait_for_element"] = env["WEBRUN_INITIAL_WAIT_FOR_ELEMENT"]
        if env.get("WEBRUN_SCREENSHOT_DIR"):
            data["screenshot_dir"] = env["WEBRUN_SCREENSHOT_DIR"]

        return cls(**data)

    def render_context(self) -> RenderContext:
        return RenderContext(
            stylesheets=list(self.stylesheets),
            scripts=list(self.scripts),
            global_styles=self.global_styles,
            import_map=self.import_map,
        )
