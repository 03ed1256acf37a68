"""テスト共通の fixture。"""

from __future__ import annotations

import pytest

from aaraster.core.runtime_config import set_config_path


@pytest.fixture(autouse=True)
def _isolated_runtime_config(tmp_path, monkeypatch):
    """CWD / HOME をテスト用ディレクトリに向け、config のキャッシュを毎回破棄する。"""

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    set_config_path(None)
    yield
    set_config_path(None)
