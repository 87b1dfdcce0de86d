from typer.testing import CliRunner

from tapi.cli import app
from tapi.config import TapiSettings
from tapi.orchestrator.generate import load_reference, run_generate

runner = CliRunner()


def test_targets_lists_every_dialect():
    result = runner.invoke(app, ["targets"])
    assert result.exit_code == 0
    for name in ("ts", "js", "fs"):
        assert name in result.output


def test_generate_ts_client_to_stdout():
    result = runner.invoke(app, ["generate", "sample_api:endpoints"])
    assert result.exit_code == 0, result.output
    out = result.output
    assert "export namespace sample_api {" in out
    assert "export const api = {\n" in out
    assert '    index: request<Record<string, never>, string>("none", "GET", "/", "text"),\n' in out
    assert (
        '    usersUserId: request<Record<string, never>, sample_api.User>'
        '("none", "GET", "/users/:user_id", "json"),\n'
    ) in out
    assert '    users: request<sample_api.User, sample_api.User>("json", "POST", "/users", "json"),\n' in out


def test_generate_js_with_client_name():
    result = runner.invoke(app, ["generate", "sample_api:endpoints", "--target", "js", "--client-name", "client"])
    assert result.exit_code == 0, result.output
    assert "export const client = {" in result.output
    assert "@typedef" in result.output


def test_generate_fs_types_from_a_type_list(tmp_path):
    out_file = tmp_path / "gen" / "Api.fs"
    result = runner.invoke(app, ["generate", "sample_api:types", "-t", "fs", "--out", str(out_file)])
    assert result.exit_code == 0, result.output

    text = out_file.read_text(encoding="utf-8")
    assert text.startswith("module Api\n")
    assert "module sample_api =" in text
    assert "type User =" in text


def test_inspect_shows_the_closure():
    result = runner.invoke(app, ["inspect", "sample_api:endpoints"])
    assert result.exit_code == 0, result.output
    assert "User" in result.output
    assert "Types:" in result.output


def test_bad_references_exit_non_zero():
    assert runner.invoke(app, ["generate", "sample_api:missing"]).exit_code == 1
    assert runner.invoke(app, ["generate", "no_colon"]).exit_code == 1
    assert runner.invoke(app, ["generate", "not_a_module_xyz:thing"]).exit_code == 1


def test_generation_errors_exit_non_zero():
    result = runner.invoke(app, ["generate", "sample_api:broken"])
    assert result.exit_code == 1
    assert "untagged" in result.output


def test_unknown_target_is_a_usage_error():
    result = runner.invoke(app, ["generate", "sample_api:types", "--target", "cobol"])
    assert result.exit_code != 0


def test_run_generate_without_endpoints_renders_declarations_only():
    result = run_generate(load_reference("sample_api:types"), target="ts")
    assert result.endpoints == 0
    assert result.namespaces == 1
    assert "export const api" not in result.text
    assert [t.name for t in result.types if t.path] == ["User"]


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("TAPI_DEFAULT_TARGET", "fs")
    monkeypatch.setenv("TAPI_CLIENT_NAME", "backend")
    settings = TapiSettings()
    assert settings.default_target == "fs"
    assert settings.client_name == "backend"
    assert settings.log_level == "WARNING"
