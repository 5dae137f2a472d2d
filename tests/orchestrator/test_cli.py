"""
Tests for the command line entry point.

============================================================
PURPOSE
============================================================
1. Argument validation and exit codes
2. Source listing
3. An offline end-to-end run on the SIMULATED source

============================================================
"""

import json

import pytest
from unittest.mock import patch

from event_sources.rate_limiter import reset_rate_limiters
from orchestrator.cli import VERSION, build_config, create_parser, main, validate_args


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """No .env file, no ambient collection settings."""
    for key in ("LOG_LEVEL", "STRENGTH_DATABASE_URL", "COLLECTION_CURRENCIES", "COLLECTION_INCLUDE_SIMULATED"):
        monkeypatch.delenv(key, raising=False)
    reset_rate_limiters()
    with patch("event_sources.config.load_dotenv"):
        yield
    reset_rate_limiters()


def parse(*argv):
    return create_parser().parse_args(list(argv))


# ============================================================
# VALIDATION TESTS
# ============================================================

class TestValidation:

    def test_valid_arguments(self):
        assert validate_args(parse("--sources", "fred", "newsapi", "--currencies", "usd", "jpy")) == []

    def test_unknown_source(self):
        assert validate_args(parse("--sources", "bloomberg")) == ["Unknown source: bloomberg"]

    def test_simulated_requires_flag(self):
        errors = validate_args(parse("--sources", "simulated"))
        assert errors == ["--sources simulated requires --include-simulated"]
        assert validate_args(parse("--sources", "simulated", "--include-simulated")) == []

    def test_unsupported_currency(self):
        assert validate_args(parse("--currencies", "XYZ")) == ["Unsupported currency: XYZ"]

    def test_missing_config_file(self, tmp_path):
        missing = tmp_path / "nope.yaml"
        assert validate_args(parse("--config", str(missing))) == [f"Config file not found: {missing}"]

    def test_main_returns_1_on_errors(self, capsys):
        assert main(["--currencies", "XYZ"]) == 1
        assert "Unsupported currency: XYZ" in capsys.readouterr().err


class TestBuildConfig:

    def test_cli_overrides(self):
        config = build_config(parse(
            "--currencies", "usd", "gbp",
            "--include-simulated",
            "--log-level", "DEBUG",
            "--database-url", "sqlite://",
        ))

        assert config.currencies == ["USD", "GBP"]
        assert config.include_simulated is True
        assert config.log_level == "DEBUG"
        assert config.strength_database_url == "sqlite://"

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "signals.yaml"
        path.write_text("currencies: [cad]\nlog_level: warning\n")

        config = build_config(parse("--config", str(path)))

        assert config.currencies == ["CAD"]
        assert config.log_level == "WARNING"


# ============================================================
# ENTRY POINT TESTS
# ============================================================

class TestMain:

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert VERSION in capsys.readouterr().out

    def test_list_sources(self, capsys):
        assert main(["--list-sources"]) == 0
        out = capsys.readouterr().out
        assert "forexfactory" in out
        assert "Trading Economics (API key)" in out
        assert "simulated" in out

    def test_simulated_json_run(self, capsys):
        code = main([
            "--include-simulated",
            "--sources", "simulated",
            "--currencies", "USD", "EUR",
            "--json",
            "--database-url", "sqlite://",
        ])

        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["success"] is True
        assert data["event_count"] == 8
        assert [r["currency"] for r in data["strength"]] == ["USD", "EUR"]
        assert {s["currency"] for s in data["power"]} == {"USD", "EUR"}
        assert data["collection"]["results"][0]["source"] == "simulated"

    def test_summary_run(self, capsys):
        code = main(["--include-simulated", "--sources", "simulated", "--currencies", "JPY", "--report"])

        out = capsys.readouterr().out
        assert code == 0
        assert "CURRENCY SIGNALS" in out
        assert "CURRENCY STRENGTH" in out
        assert "POWER RANKING" in out
        assert "CURRENCY POWER ANALYSIS REPORT" in out
