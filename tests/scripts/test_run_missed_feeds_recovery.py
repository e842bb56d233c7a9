"""Testes do script agendado de recuperação."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from app.domain.notifications import RecoveryResult
from scripts import run_missed_feeds_recovery as script
from utils.errors import CredentialsUnavailableError


def test_parse_args_accepts_repeated_options() -> None:
    args = script.parse_args(
        ["--tenant", "1", "--tenant", "2", "--topic", "items", "--max-age-hours", "24", "--dry-run"]
    )

    assert args.tenant == ["1", "2"]
    assert args.topic == ["items"]
    assert args.max_age_hours == 24
    assert args.dry_run is True


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["--tenant", "1", "--max-age-hours", "0"],
        ["--tenant", "1", "--topic", "invoices"],
    ],
)
def test_parse_args_rejects_invalid_input(argv: list[str]) -> None:
    with pytest.raises(SystemExit):
        script.parse_args(argv)


@pytest.mark.asyncio
async def test_run_reports_each_tenant_and_fails_on_error(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    recovery = SimpleNamespace(
        recover_all_missed_feeds=AsyncMock(
            side_effect=[
                RecoveryResult(processed=3, failed=0, skipped=1, total=4, duration_ms=12),
                CredentialsUnavailableError("2", "expired"),
            ]
        )
    )
    container = SimpleNamespace(recovery=recovery, aclose=AsyncMock())
    monkeypatch.setattr(script, "validate_runtime_settings", lambda: [])
    monkeypatch.setattr(script, "build_container", lambda: container)

    exit_code = await script.run(script.parse_args(["--tenant", "1", "--tenant", "2"]))

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "[apply] tenant=1 processed=3 failed=0 skipped=1" in captured.out
    assert "[2] falhou: CredentialsUnavailableError" in captured.err
    container.aclose.assert_awaited_once()
