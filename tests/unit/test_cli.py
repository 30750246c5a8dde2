from __future__ import annotations

import sys

import pytest

from cloudapp.__main__ import main
from cloudapp.settings import get_settings


@pytest.fixture(autouse=True)
def isolated_cli(monkeypatch):
    monkeypatch.setenv("CLOUDAPP_APPLICATION", "")
    monkeypatch.delenv("CLOUDAPP_APPLICATION")
    monkeypatch.setattr(sys, "argv", ["cloudapp"])
    yield
    get_settings.cache_clear()


def test_list_command_prints_resources(capsys) -> None:
    assert main(["samples.order_api.main:create_builder", "list"]) == 0

    out = capsys.readouterr().out
    assert "Functions (3):" in out
    assert "/orders/{id}" in out


def test_configuration_error_exits_with_status_1(capsys) -> None:
    assert main(["samples.order_api.main:missing", "list"]) == 1
    assert "error:" in capsys.readouterr().err
