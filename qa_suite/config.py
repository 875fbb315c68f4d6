"""Shared configuration for the API and UI suites.

Every value resolves in this order:
1. process environment (``BASE_URL=... pytest``)
2. ``.env`` / ``.env.defaults`` at the repository root
3. the built-in default below

Run profiles mirror the browser/device matrix of the suite. ``TEST_PROFILE``
selects one of them (``api``, ``chromium``, ``firefox``, ``webkit``,
``mobile``, ``integration``); when it is unset every test directory runs on
desktop Chromium.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from qa_suite.env_defaults import get_env_default

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_API_TOKEN = "test-token"

ACTION_TIMEOUT_MS = 10000
NAVIGATION_TIMEOUT_MS = 30000

ARTIFACT_MODES = {"off", "on", "retain-on-failure"}
CI_RERUNS = 2


@dataclass
class RunProfile:
    """One entry of the browser/device matrix."""

    name: str
    test_dir: str
    browser_type: str = "chromium"
    device: Optional[str] = None
    viewport: Optional[Dict[str, int]] = None
    extra_http_headers: Dict[str, str] = field(default_factory=dict)

    def owns(self, relative_path: str) -> bool:
        """True if a test file (path relative to ``qa_suite/tests``) belongs to this profile."""
        parts = Path(relative_path).parts
        return bool(parts) and parts[0] == self.test_dir


def build_profiles(api_token: str) -> Dict[str, RunProfile]:
    profiles = [
        RunProfile(
            name="api",
            test_dir="api",
            device="Desktop Chrome",
            extra_http_headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_token}",
            },
        ),
        RunProfile(name="chromium", test_dir="e2e", device="Desktop Chrome"),
        RunProfile(name="firefox", test_dir="e2e", browser_type="firefox", device="Desktop Firefox"),
        RunProfile(name="webkit", test_dir="e2e", browser_type="webkit", device="Desktop Safari"),
        RunProfile(name="mobile", test_dir="e2e", browser_type="webkit", device="iPhone 13"),
        RunProfile(
            name="integration",
            test_dir="integration",
            device="Desktop Chrome",
            viewport={"width": 1920, "height": 1080},
        ),
    ]
    return {profile.name: profile for profile in profiles}


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


class SuiteConfig:
    """Configuration resolved from the environment.

    ``environ`` and ``use_env_files`` exist so the harness tests can build a
    config from a plain dict without touching the real environment.
    """

    def __init__(self, environ: Mapping[str, str] | None = None, use_env_files: bool = True) -> None:
        self._environ = os.environ if environ is None else environ
        self._use_env_files = use_env_files

        self.ci: bool = _truthy(self._get("CI"))

        self.base_url: str = self._get("BASE_URL") or DEFAULT_BASE_URL
        self.api_url: str = self._get("API_URL") or DEFAULT_API_URL
        self.api_url_configured: bool = bool(self._get("API_URL"))
        self.api_token: str = self._get("API_TOKEN") or DEFAULT_API_TOKEN

        self.test_user_email: str | None = self._get("TEST_USER_EMAIL") or None
        self.test_user_password: str | None = self._get("TEST_USER_PASSWORD") or None

        headless = self._get("PLAYWRIGHT_HEADLESS")
        if headless is None:
            headless = "true"
            if environ is None:
                print("[CONFIG] WARNING: PLAYWRIGHT_HEADLESS not set, using default: true")
        self.playwright_headless: bool = _truthy(headless)

        self.action_timeout: int = int(self._get("ACTION_TIMEOUT_MS") or ACTION_TIMEOUT_MS)
        self.navigation_timeout: int = int(self._get("NAVIGATION_TIMEOUT_MS") or NAVIGATION_TIMEOUT_MS)
        self.api_timeout: float = float(self._get("API_TIMEOUT_SECONDS") or 30.0)

        self.reports_dir: Path = Path(self._get("REPORTS_DIR") or "reports")
        self.video_mode: str = self._artifact_mode("PLAYWRIGHT_VIDEO", "retain-on-failure")
        self.trace_mode: str = self._artifact_mode(
            "PLAYWRIGHT_TRACE", "retain-on-failure" if self.ci else "off"
        )

        self._profiles: Dict[str, RunProfile] = build_profiles(self.api_token)
        selected = self._get("TEST_PROFILE") or None
        if selected and selected not in self._profiles:
            raise ValueError(
                f"Unknown TEST_PROFILE={selected!r}; expected one of {sorted(self._profiles)}"
            )
        self.selected_profile: str | None = selected
        self._active: RunProfile = self._profiles[selected or "chromium"]

    def _get(self, key: str) -> str | None:
        value = self._environ.get(key)
        if value is None and self._use_env_files:
            value = get_env_default(key)
        return value

    def _artifact_mode(self, key: str, default: str) -> str:
        mode = self._get(key) or default
        if mode not in ARTIFACT_MODES:
            raise ValueError(f"{key}={mode!r}; expected one of {sorted(ARTIFACT_MODES)}")
        return mode

    # ---- profile helpers --------------------------------------------------------
    @property
    def profile(self) -> RunProfile:
        return self._active

    def profiles(self) -> List[RunProfile]:
        return list(self._profiles.values())

    def get_profile(self, name: str) -> RunProfile:
        try:
            return self._profiles[name]
        except KeyError:
            raise ValueError(f"Unknown run profile {name!r}") from None

    # ---- credentials ------------------------------------------------------------
    @property
    def has_test_user(self) -> bool:
        return bool(self.test_user_email and self.test_user_password)

    # ---- utility helpers --------------------------------------------------------
    def reruns(self, requested: int = 0) -> int:
        """Reruns for a failed test: an explicit ``--reruns`` wins, otherwise two in CI."""
        if requested:
            return requested
        return CI_RERUNS if self.ci else 0

    def artifact_dir(self, kind: str) -> Path:
        return self.reports_dir / kind


settings = SuiteConfig()
