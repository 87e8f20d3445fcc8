"""Shared fixtures for flightcore tests."""

import shutil
import tempfile
import zipfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from flightcore.config.schemas import GameInstall
from flightcore.core.consent import ConsentGate, ConsentRequest
from flightcore.core.installer import PluginInstaller

MANIFEST = '{"name": "Foo", "version_number": "1.0.0", "description": "Test package"}'


class AutoConsent:
    """Notifier that answers every consent request immediately."""

    def __init__(self, approve: bool):
        self.approve = approve
        self.gate: ConsentGate | None = None
        self.requests: list[ConsentRequest] = []

    def __call__(self, request: ConsentRequest) -> None:
        self.requests.append(request)
        assert self.gate is not None
        self.gate.submit_consent(self.approve, request.request_id)


class RecordingNotifier:
    """Notifier that only records requests; the test submits decisions."""

    def __init__(self):
        self.requests: list[ConsentRequest] = []

    def __call__(self, request: ConsentRequest) -> None:
        self.requests.append(request)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory."""
    path = Path(tempfile.mkdtemp(prefix="flightcore_test_"))
    yield path
    if path.exists():
        shutil.rmtree(path)


@pytest.fixture
def game_install(temp_dir: Path) -> GameInstall:
    """A game install with an empty plugins directory."""
    install = GameInstall(game_path=temp_dir / "Titanfall2", install_type="steam")
    install.plugins_dir.mkdir(parents=True)
    return install


@pytest.fixture
def plugins_dir(game_install: GameInstall) -> Path:
    """The live plugins directory of the test game install."""
    return game_install.plugins_dir


@pytest.fixture
def make_zip(temp_dir: Path) -> Callable[..., Path]:
    """Factory writing a zip archive from a mapping of entry name to content.

    A content of None writes a directory entry.
    """
    counter = iter(range(1000))

    def _make(entries: dict[str, str | bytes | None]) -> Path:
        path = temp_dir / f"archive{next(counter)}.zip"
        with zipfile.ZipFile(path, "w") as zf:
            for entry, content in entries.items():
                if content is None:
                    zf.writestr(entry if entry.endswith("/") else f"{entry}/", b"")
                else:
                    zf.writestr(entry, content)
        return path

    return _make


@pytest.fixture
def plugin_zip(make_zip: Callable[..., Path]) -> Path:
    """A package archive carrying a manifest and one native plugin."""
    return make_zip(
        {
            "manifest.json": MANIFEST,
            "icon.png": b"\x89PNG",
            "plugins/": None,
            "plugins/FooPlugin.dll": b"MZ\x90\x00",
        }
    )


@pytest.fixture
def plain_zip(make_zip: Callable[..., Path]) -> Path:
    """A package archive with a manifest and no plugins."""
    return make_zip({"manifest.json": MANIFEST, "mods/Foo/mod.json": "{}"})


@pytest.fixture
def installer_factory() -> Callable[..., PluginInstaller]:
    """Factory building an installer whose consent gate answers automatically."""

    def _make(approve: bool = True, timeout: float | None = None) -> PluginInstaller:
        notifier = AutoConsent(approve)
        gate = ConsentGate(notifier, timeout=timeout)
        notifier.gate = gate
        return PluginInstaller(gate)

    return _make


@pytest.fixture
def approving_installer(installer_factory: Callable[..., PluginInstaller]) -> PluginInstaller:
    """Installer that approves every plugin install."""
    return installer_factory(approve=True)


@pytest.fixture
def denying_installer(installer_factory: Callable[..., PluginInstaller]) -> PluginInstaller:
    """Installer that denies every plugin install."""
    return installer_factory(approve=False)


@pytest.fixture
def recording_notifier() -> RecordingNotifier:
    """Notifier that never answers on its own."""
    return RecordingNotifier()
