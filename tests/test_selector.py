"""Tests for perch.handlers.selector: handle module selection."""

from pathlib import Path

from perch.handlers.selector import ModuleSelector
from perch.handlers.types import HandleModule, Handler, ModuleType


def _handler() -> Handler:
    return Handler(
        name="demo_02",
        active_module="success_1",
        modules=(
            HandleModule(name="error", query={"_m_target": "error", "errCode": 100000}),
            HandleModule(name="success_1", query={"_m_target": "success_1"}),
        ),
    )


class TestModuleSelector:
    def test_active_module_by_default(self) -> None:
        resolved = ModuleSelector("/base").select(_handler(), {})

        assert resolved.module.name == "success_1"
        assert resolved.full_path == Path("/base/demo_02/handle_modules/success_1")

    def test_explicit_target_wins(self) -> None:
        resolved = ModuleSelector("/base").select(_handler(), {"_m_target": "error", "id": "1"})

        assert resolved.module.name == "error"
        assert resolved.full_path == Path("/base/demo_02/handle_modules/error")
        assert resolved.params == {"_m_target": "error", "errCode": 100000, "id": "1"}

    def test_caller_params_win(self) -> None:
        resolved = ModuleSelector("/base").select(_handler(), {"_m_target": "error", "errCode": 1})
        assert resolved.params["errCode"] == 1

    def test_unknown_module(self) -> None:
        assert ModuleSelector("/base").select(_handler(), {"_m_target": "nope"}) is None

    def test_no_handler(self) -> None:
        assert ModuleSelector("/base").select(None, {}) is None

    def test_no_module_path(self) -> None:
        handler = Handler(
            name="demo_01",
            active_module="index_module",
            modules=(
                HandleModule(
                    name="index_module",
                    type=ModuleType.NO_MODULE,
                    query={"_m_target": "index_module"},
                    file_name="index.json",
                ),
            ),
        )

        resolved = ModuleSelector("/base").select(handler)
        assert resolved.full_path == Path("/base/demo_01/index.json")
        assert resolved.params == {"_m_target": "index_module"}

    def test_custom_layout(self) -> None:
        selector = ModuleSelector("/base", handle_modules_dir="mocks", target_field="use")
        resolved = selector.select(_handler(), {"use": "error"})

        assert resolved.full_path == Path("/base/demo_02/mocks/error")
