"""Shared fixtures: a small mock project on disk."""

import json
from pathlib import Path

import pytest

from perch.config import ResolverConfig


def write_json(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


def build_mock_tree(handlers_dir: Path) -> None:
    """Lay out the handler tree used across the suite.

    - demo_01: no handle modules, answers from index.json
    - demo_02: two handle modules (error, success_1) and a README
    - notes.txt: a stray file where only directories belong
    - broken: no config at all
    - no_index: has config but neither modules nor an index file
    """
    demo_01 = handlers_dir / "demo_01"
    write_json(demo_01 / "config.json", {"route": "/cgi-bin/a/b/demo_01"})
    write_json(demo_01 / "index.json", {"retcode": 0, "from": "demo_01"})

    demo_02 = handlers_dir / "demo_02"
    write_json(
        demo_02 / "config.json",
        {
            "route": "/cgi-bin/a/b/demo_02",
            "description": "demo two",
            "active_module": "success_1",
            "owner": "qa",
        },
    )
    (demo_02 / "readme.md").write_text("# __HANDLER_PATH__\n\nMocks the demo CGI.\n", encoding="utf-8")
    error = demo_02 / "handle_modules" / "error"
    write_json(error / "config.json", {"description": "error case", "query": {"errCode": 100000}})
    write_json(error / "index.json", {"errCode": 100000})
    success = demo_02 / "handle_modules" / "success_1"
    success.mkdir(parents=True)
    (success / "index.py").write_text(
        "def handle(params, *extra):\n"
        "    return {'result': {'other': 'other', 'result': 1}, 'retcode': 0, 'name': params.get('name')}\n",
        encoding="utf-8",
    )

    (handlers_dir / "notes.txt").write_text("not a handler", encoding="utf-8")
    (handlers_dir / "broken").mkdir()
    write_json(handlers_dir / "no_index" / "config.json", {"route": "/no_index"})


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Project root whose runtime tree is the root itself."""
    build_mock_tree(tmp_path / "mocker")
    return tmp_path


@pytest.fixture
def config(project: Path) -> ResolverConfig:
    return ResolverConfig(root_path=project, src_path=project, app_path=project)


@pytest.fixture
def handlers_dir(project: Path) -> Path:
    return project / "mocker"


@pytest.fixture
def mock_tree():
    """The tree builder itself, for tests that need their own layout root."""
    return build_mock_tree
