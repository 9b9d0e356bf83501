import pytest

import cli

ARGS = ["--service", "web", "--namespace", "shop", "--app-root", "store"]


@pytest.fixture(autouse=True)
def quiet_process(monkeypatch):
    # main() reconfigures the root logger and installs a SIGTERM handler; keep both out of the test run.
    monkeypatch.setattr(cli, "setup_logging", lambda level: None)
    monkeypatch.setattr(cli.signal, "signal", lambda *a: None)


def test_missing_config_exits_non_zero(monkeypatch):
    for name in ("SERVICE_NAME", "NAMESPACE", "APP_ROOT"):
        monkeypatch.delenv(name, raising=False)
    assert cli.main([]) == 2


def test_fatal_startup_error_exits_one(monkeypatch):
    def boom(settings):
        raise RuntimeError("cannot build")

    monkeypatch.setattr(cli, "build_reconciler", boom)
    assert cli.main(ARGS) == 1


def test_interrupt_is_graceful(monkeypatch):
    class Stub:
        prober = type("P", (), {"url": "http://x"})()

        def run(self):
            raise KeyboardInterrupt

    monkeypatch.setattr(cli, "build_reconciler", lambda settings: Stub())
    assert cli.main(ARGS) == 0


def test_cli_options_map_to_settings(monkeypatch):
    seen = []

    class Stub:
        prober = type("P", (), {"url": "http://x"})()

        def run(self):
            return None

    def build(settings):
        seen.append(settings)
        return Stub()

    monkeypatch.setattr(cli, "build_reconciler", build)
    assert cli.main(ARGS + ["--check-interval", "7", "--http-timeout", "250"]) == 0
    assert seen[0].check_interval_s == 7
    assert seen[0].http_timeout_ms == 250
    assert seen[0].service_name == "web"
