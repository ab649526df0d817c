"""Tests for the command line entry point."""

import json

import pytest

import cardinality_exporter.cli as cli
from cardinality_exporter.config import Environment, Settings
from cardinality_exporter.exceptions import ConfigurationError
from cardinality_exporter.services.cardinality_client import CardinalityClient
from tests.testing_utils import FakeBackend

_ADDRESS = "http://mimir.test"


def _parse(*argv: str):
    return cli.create_parser().parse_args(list(argv))


def _patch_client(monkeypatch: pytest.MonkeyPatch, backend: FakeBackend) -> None:
    def build_client(settings: Settings) -> CardinalityClient:
        return CardinalityClient(address=settings.address, transport=backend.transport())

    monkeypatch.setattr(cli, "_build_client", build_client)


class TestLoadSettings:
    """Flags override environment values."""

    def test_environment_used_without_flags(self) -> None:
        env = Environment(PROMETHEUS_ADDRESS=_ADDRESS, DIMENSION="namespace")

        settings = cli.load_settings(_parse(), env)

        assert settings.address == _ADDRESS
        assert settings.dimension == "namespace"

    def test_flags_override_environment(self) -> None:
        env = Environment(PROMETHEUS_ADDRESS="http://other", DIMENSION="namespace")
        args = _parse(
            "--address", _ADDRESS,
            "--dimension", "job",
            "--selector", '{env="prod"}',
            "--timeout", "2.5",
            "--port", "9100",
            "--password", "secret",
        )

        settings = cli.load_settings(args, env)

        assert settings.address == _ADDRESS
        assert settings.dimension == "job"
        assert settings.selector == '{env="prod"}'
        assert settings.timeout_seconds == 2.5
        assert settings.port == 9100
        assert settings.password.get_secret_value() == "secret"

    def test_repeated_header_flags(self) -> None:
        args = _parse("--header", "X-Foo=a", "--header", "X-Foo=b")

        settings = cli.load_settings(args, Environment())

        assert settings.headers == [("X-Foo", "a"), ("X-Foo", "b")]

    def test_malformed_header_flag(self) -> None:
        with pytest.raises(ConfigurationError):
            cli.load_settings(_parse("--header", "X-Foo"), Environment())


class TestMain:
    """Tests for main() dispatch."""

    def test_empty_dimension_exits_with_usage(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--address", _ADDRESS, "--dimension", ""])

        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "usage:" in err
        assert "DIMENSION" in err

    def test_missing_address_exits(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])

        assert exc_info.value.code == 1

    def test_unparseable_environment_exits_with_usage(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setenv("PORT", "abc")

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--address", _ADDRESS])

        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "usage:" in err
        assert "PORT" in err

    def test_serve_is_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import cardinality_exporter.core.runner as runner

        calls: list[Settings] = []
        monkeypatch.setattr(runner, "run", calls.append)

        cli.main(["--address", _ADDRESS])

        assert len(calls) == 1
        assert calls[0].address == _ADDRESS

    def test_label_names_prints_json(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        backend: FakeBackend,
    ) -> None:
        _patch_client(monkeypatch, backend)

        cli.main(["--address", _ADDRESS, "--selector", '{job="a"}', "label-names"])

        output = json.loads(capsys.readouterr().out)
        assert output["label_names_count"] == 2
        assert backend.last_request.url.params["selector"] == '{job="a"}'

    def test_label_values_defaults_to_dimension(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        backend: FakeBackend,
    ) -> None:
        _patch_client(monkeypatch, backend)

        cli.main(["--address", _ADDRESS, "label-values"])

        output = json.loads(capsys.readouterr().out)
        assert output["series_count_total"] == 100
        assert backend.last_request.url.params.get_list("label_names[]") == ["job"]

    def test_label_values_with_label_names(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        backend: FakeBackend,
    ) -> None:
        _patch_client(monkeypatch, backend)

        cli.main(
            [
                "--address", _ADDRESS,
                "label-values", "--label-name", "job", "--label-name", "instance",
            ]
        )

        capsys.readouterr()
        assert backend.last_request.url.params.get_list("label_names[]") == [
            "job",
            "instance",
        ]

    def test_query_failure_exits_with_code_1(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        backend: FakeBackend,
    ) -> None:
        _patch_client(monkeypatch, backend)
        backend.status_code = 500
        backend.body = b"internal error"

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--address", _ADDRESS, "label-names"])

        assert exc_info.value.code == 1
        assert "500" in capsys.readouterr().err
