from typer.testing import CliRunner

import fizzy_pop.cli as cli
from fizzy_pop.config import load_settings

runner = CliRunner()


def test_missing_url_exits_with_error(monkeypatch):
    monkeypatch.delenv("FIZZY_URL", raising=False)
    monkeypatch.delenv("FIZZY_POP_CONFIG", raising=False)
    res = runner.invoke(cli.app, ["--token", "t", "--dry-run"])
    assert res.exit_code == 1
    assert "Missing required --url" in res.output


def test_no_active_agents_exits_before_polling(monkeypatch):
    ran = []

    class FakeScheduler:
        agents = []

        def start(self):
            from fizzy_pop.scheduler import NoActiveAgentsError

            raise NoActiveAgentsError("No agents with accounts.")

        def run_forever(self):
            ran.append(True)

    monkeypatch.setitem(cli.__dict__, "build_scheduler", lambda _s: FakeScheduler())
    res = runner.invoke(cli.app, ["--url", "https://x", "--token", "t", "--dry-run"])
    assert res.exit_code == 1
    assert "No agents with accounts" in res.output
    assert ran == []


def test_build_scheduler_wires_settings():
    settings = load_settings(url="https://x", token="t", dry_run=True)
    s = cli.build_scheduler(settings)
    assert [a.name for a in s.agents] == ["default"]
    assert s.agents[0].dry_run is True
    assert s.dispatcher.dry_run is True
    assert s.dispatcher.trail is s.trail
    assert s.interval_polling == settings.interval_polling
