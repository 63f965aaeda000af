"""Shared pytest fixtures and test helpers for tradelink tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from tradelink.config.settings import TradelinkSettings
from tradelink.domain.accounts import AccountRef, parse_account_ref
from tradelink.infrastructure.database.engine import init_database
from tradelink.infrastructure.network import Network
from tradelink.services.telemetry import disable_telemetry


@pytest.fixture(autouse=True)
def _clean_process_state(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Keep env vars, root logging handlers, and telemetry from leaking between tests."""
    monkeypatch.delenv("TRADELINK_CONFIG", raising=False)
    monkeypatch.delenv("TRADELINK_ACTING_AS", raising=False)
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Generator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def network(tmp_path: Path) -> Generator[Network]:
    """Network on a fresh database under a temp root, plugins initialized."""
    settings = TradelinkSettings.from_cli(root=tmp_path)
    net = Network(settings)
    net.init_plugins()
    try:
        yield net
    finally:
        net.close()


@pytest.fixture
def _isolated_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI creates an isolated database.

    Use via ``@pytest.mark.usefixtures("_isolated_root")`` on command test
    classes.
    """
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def ref(raw: str) -> AccountRef:
    """Shorthand: ``ref("ann")`` or ``ref("organization:acme")``."""
    return parse_account_ref(raw)


def add_account(network: Network, raw: str, **fields: Any) -> AccountRef:
    """Register an account via AccountService, asserting success."""
    from tradelink.services.accounts import AccountService

    account = ref(raw)
    result = AccountService(network).register_account(account, **fields)
    assert result.ok, result.error
    return account


def add_person(network: Network, raw: str, **fields: Any) -> AccountRef:
    """Register an individual with a name and an email derived from its id."""
    account = ref(raw)
    defaults: dict[str, Any] = {
        "first_name": account.id.title(),
        "last_name": "Test",
        "email": f"{account.id}@example.com",
    }
    return add_account(network, raw, **{**defaults, **fields})


def connect(network: Network, a: AccountRef, b: AccountRef) -> dict[str, Any]:
    """Send a request from *a* and accept it as *b*; returns the accepted edge."""
    from tradelink.services.connections import ConnectionService

    svc = ConnectionService(network)
    sent = svc.send_request(a, b)
    assert sent.ok, sent.error
    accepted = svc.accept_request(sent.data["connection"]["id"], b)
    assert accepted.ok, accepted.error
    return accepted.data["connection"]


def invoke_json(runner: CliRunner, *args: str, exit_code: int = 0) -> dict[str, Any]:
    """Invoke the CLI with ``--json`` and return the parsed ServiceResult."""
    import json

    from tradelink.cli import cli

    result = runner.invoke(cli, ["--json", *args])
    assert result.exit_code == exit_code, result.output
    return json.loads(result.output)


def seed_accounts(runner: CliRunner, *names: str) -> None:
    """Register individuals named *names* through the CLI."""
    from tradelink.cli import cli

    for name in names:
        result = runner.invoke(
            cli,
            [
                "account",
                "add",
                name,
                "--first-name",
                name.title(),
                "--email",
                f"{name}@example.com",
            ],
        )
        assert result.exit_code == 0, result.output
