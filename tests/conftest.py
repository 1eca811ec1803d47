"""Test configuration and helper fixtures."""

from __future__ import annotations

import asyncio
import base64
import inspect
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

from subfusion.storage import MemoryStore


@pytest.hookimpl
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers used in the test-suite."""

    config.addinivalue_line("markers", "asyncio: run the test inside an event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute ``async def`` tests marked with ``@pytest.mark.asyncio``."""

    test_func = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_func):
        return None

    if pyfuncitem.get_closest_marker("asyncio") is None:
        return None

    fixture_names = pyfuncitem._fixtureinfo.argnames  # type: ignore[attr-defined]
    call_kwargs = {name: pyfuncitem.funcargs[name] for name in fixture_names}
    asyncio.run(test_func(**call_kwargs))
    return True


@dataclass
class SimpleFS:
    """Lightweight fake file-system helper used by config tests."""

    root: Path

    def create_file(self, relative_path: str, contents: str = "") -> Path:
        file_path = self.root / relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(contents)
        return file_path


@pytest.fixture
def fs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> SimpleFS:
    """Provide a simple fake file-system rooted at ``tmp_path``."""

    original_cwd = Path.cwd()
    monkeypatch.chdir(tmp_path)
    helper = SimpleFS(tmp_path)

    yield helper

    monkeypatch.chdir(original_cwd)


@pytest.fixture
def vmess_link() -> Callable[..., str]:
    """Build base64 JSON vmess links."""

    def factory(
        name: str,
        server: str = "hk.example.com",
        port: int = 443,
        uuid: str = "a1b2c3d4-e5f6-7890-1234-567890abcdef",
        **extra: Any,
    ) -> str:
        payload: Dict[str, Any] = {
            "v": "2",
            "ps": name,
            "add": server,
            "port": str(port),
            "id": uuid,
            "aid": "0",
            "net": "tcp",
            "tls": "",
        }
        payload.update(extra)
        encoded = base64.b64encode(json.dumps(payload, ensure_ascii=False).encode()).decode()
        return f"vmess://{encoded}"

    return factory


@pytest.fixture
def profile_store() -> Callable[..., MemoryStore]:
    """Build a ``MemoryStore`` seeded with profile and source collections."""

    def factory(
        profiles: Optional[List[Dict[str, Any]]] = None,
        sources: Optional[List[Dict[str, Any]]] = None,
    ) -> MemoryStore:
        return MemoryStore(
            {
                "subfusion:profiles": profiles or [],
                "subfusion:subscriptions": sources or [],
            }
        )

    return factory
