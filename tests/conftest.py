"""Shared fixtures: a throwaway copy of the site sources."""

import shutil
from datetime import datetime, timezone
from pathlib import Path

import pytest

from site_config import load_config

REPO_ROOT = Path(__file__).resolve().parent.parent

REF_DATE = datetime(2026, 1, 10, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("PUBLISH_ROOT", "DATA_FILE", "PORT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def project(tmp_path) -> Path:
    """Project root with the repo's templates, content and site.yaml."""
    shutil.copytree(REPO_ROOT / "templates", tmp_path / "templates")
    shutil.copytree(REPO_ROOT / "content", tmp_path / "content")
    shutil.copyfile(REPO_ROOT / "site.yaml", tmp_path / "site.yaml")
    return tmp_path


@pytest.fixture
def dist_config(project):
    return load_config(project, out_dir=project / "dist")
