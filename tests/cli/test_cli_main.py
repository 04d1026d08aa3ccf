from unittest.mock import AsyncMock, MagicMock, patch

import pytest


def test_cli_main_invokes_uvicorn_run(monkeypatch):
    monkeypatch.setenv("HEALTHWATCH_PORT", "9100")

    with patch("uvicorn.run") as mock_run:
        # import inside test to ensure patch target is available
        from healthwatch.cli import main as cli_main

        cli_main.main()

    mock_run.assert_called_once()
    assert mock_run.call_args.args[0] == "healthwatch.main:app"
    assert mock_run.call_args.kwargs["port"] == 9100


def test_refresh_all_prints_summary(capsys):
    from healthwatch.cli import main as cli_main

    session = MagicMock()
    summary = {"refreshed_count": 3, "unhealthy_count": 1}

    with patch("healthwatch.db.database.SessionLocal", return_value=session), \
         patch("healthwatch.db.database.init_db"), \
         patch("healthwatch.logging_config.configure_logging"), \
         patch(
             "healthwatch.services.refresh_service.run_scheduled_refresh",
             new_callable=AsyncMock,
             return_value=summary,
         ) as mock_refresh:
        result = cli_main.refresh_all()

    assert result == summary
    mock_refresh.assert_awaited_once()
    session.close.assert_called_once()
    assert "refreshed=3 unhealthy=1" in capsys.readouterr().out


def test_refresh_all_exits_non_zero_on_failure():
    from healthwatch.cli import main as cli_main

    session = MagicMock()

    with patch("healthwatch.db.database.SessionLocal", return_value=session), \
         patch("healthwatch.db.database.init_db"), \
         patch("healthwatch.logging_config.configure_logging"), \
         patch(
             "healthwatch.services.refresh_service.run_scheduled_refresh",
             new_callable=AsyncMock,
             side_effect=RuntimeError("database unavailable"),
         ):
        with pytest.raises(SystemExit) as exc:
            cli_main.refresh_all()

    assert exc.value.code == 1
    session.close.assert_called_once()
