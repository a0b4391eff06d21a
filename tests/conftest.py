"""Shared pytest fixtures for Datumflow tests."""
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List

import pytest
import yaml

from datumflow.core.config import ConfigManager, set_global_config
from datumflow.core.logging import Logger, LogLevel, set_global_logger
from datumflow.services.interfaces import FileMap, FilesystemView
from datumflow.services.memory import InMemoryRepoStore
from datumflow.session import EnumerationSession


class RecordingView(FilesystemView):
    """Filesystem view that records what it was asked to present."""

    def __init__(self):
        self.presented: List[FileMap] = []
        self.clears = 0

    def present(self, files: FileMap) -> None:
        self.presented.append(files)

    def clear(self) -> None:
        self.clears += 1

    @property
    def current(self) -> FileMap:
        return self.presented[-1]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store() -> InMemoryRepoStore:
    """Two repos: repo1 on master, repo2 on dev.

    repo1@master: /dir/file1, /file2
    repo2@dev:    /dir/file3, /file4
    """
    store = InMemoryRepoStore()
    store.create_repo("default", "repo1")
    store.put_files("default", "repo1", "master", ["dir/file1", "file2"])
    store.create_repo("default", "repo2")
    store.put_files("default", "repo2", "dev", ["dir/file3", "file4"])
    return store


@pytest.fixture
def join_store() -> InMemoryRepoStore:
    """Repos whose file stems overlap on file2 and file3.

    repo1@master: /file1.txt, /file2.txt, /file3.txt
    repo2@master: /dir/file2.txt, /dir/file3.txt, /dir/file4.txt
    """
    store = InMemoryRepoStore()
    store.create_repo("default", "repo1")
    store.put_files("default", "repo1", "master", ["file1.txt", "file2.txt", "file3.txt"])
    store.create_repo("default", "repo2")
    store.put_files("default", "repo2", "master", ["dir/file2.txt", "dir/file3.txt", "dir/file4.txt"])
    return store


@pytest.fixture
def config() -> ConfigManager:
    """Configuration with compiled defaults only."""
    return ConfigManager(load_environment=False)


@pytest.fixture
def logger() -> Logger:
    """Quiet logger for components under test."""
    return Logger(name="datumflow.test", level=LogLevel.DEBUG, handlers=[logging.NullHandler()])


@pytest.fixture
def view() -> RecordingView:
    """Filesystem view that records presented datums."""
    return RecordingView()


@pytest.fixture
def make_session(config: ConfigManager, logger: Logger):
    """Factory for sessions over a given store."""

    def factory(repo_store: InMemoryRepoStore, **kwargs: Any) -> EnumerationSession:
        kwargs.setdefault("config", config)
        kwargs.setdefault("logger", logger)
        return EnumerationSession(repo_store, repo_store, **kwargs)

    return factory


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Provide a sample Datumflow configuration."""
    return {
        "datumflow": {
            "enumeration": {"page_size": 3, "page_cache_pages": 2},
            "resolution": {"max_workers": 2, "default_branch": "main"},
            "spec": {"default_project": "research", "output_repo": "results"},
            "logging": {"level": "DEBUG", "file": None},
        }
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_config: Dict[str, Any]) -> Path:
    """Create a configuration file."""
    config_path = temp_dir / "datumflow.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config, f)
    return config_path


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset global configuration and logger between tests."""
    set_global_config(None)
    set_global_logger(None)
    yield
    set_global_config(None)
    set_global_logger(None)
