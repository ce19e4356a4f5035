"""Tests for the database bootstrap script."""

import logging

from campus_checkin import init_db as init_db_module


def test_init_db_creates_tables_and_hides_password(mocker, caplog) -> None:
    create_tables = mocker.patch.object(init_db_module, "create_tables")

    with caplog.at_level(logging.INFO, logger="campus_checkin.init_db"):
        init_db_module.init_db()

    create_tables.assert_called_once_with()
    assert "Created tables on" in caplog.text
