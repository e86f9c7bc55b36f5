from __future__ import annotations

import pytest

from userauth.infrastructure.container import Container
from userauth.manage import main
from userauth.shared.config import AppConfig


def test_init_db_then_purge_users(
    app_config: AppConfig, capsys: pytest.CaptureFixture[str]
) -> None:
    container = Container(app_config)
    assert main(["init-db"], container=container) == 0

    container = Container(app_config)
    container.user_repository.add("qa+1@example.com", "hash-1")
    container.user_repository.add("keep@example.com", "hash-2")

    assert main(["purge-users", "QA+1@example.com", "ghost@example.com"], container=container) == 0

    assert "Deleted 1 user(s)" in capsys.readouterr().out
    survivors = Container(app_config)
    assert survivors.user_repository.find_by_email("keep@example.com") is not None
    assert survivors.user_repository.find_by_email("qa+1@example.com") is None
    survivors.database.dispose()


def test_purge_users_needs_an_email() -> None:
    with pytest.raises(SystemExit):
        main(["purge-users"])
