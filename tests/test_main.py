from __future__ import annotations

import pytest

from ytdata import main as cli
from ytdata.errors import AuthError


def test_export_command_builds_config(monkeypatch, capsys, tmp_path):
    seen = {}

    def fake_run_export(kind, cfg):
        seen["kind"] = kind
        seen["cfg"] = cfg
        return 7

    monkeypatch.setattr(cli, "run_export", fake_run_export)
    token = tmp_path / "token.json"

    rc = cli.main(["--credentials", str(token), "--client-secret", "secrets.json", "liked", "-o", "out.jsonl"])

    assert rc == 0
    assert seen["kind"] == "liked"
    assert seen["cfg"].output_path == "out.jsonl"
    assert seen["cfg"].client_secrets == "secrets.json"
    assert seen["cfg"].token_path == str(token)
    assert "Wrote 7 records" in capsys.readouterr().out


@pytest.mark.parametrize("command,default_output", [
    ("liked", "liked_videos.jsonl"),
    ("subscriptions", "subscriptions.jsonl"),
    ("playlists", "playlists.jsonl"),
])
def test_default_output_names(command, default_output):
    args = cli.build_parser().parse_args([command])
    assert args.output == default_output
    assert args.client_secret == ""


def test_friendly_error_exits_non_zero(monkeypatch, capsys):
    def failing(kind, cfg):
        raise AuthError("oauth flow failed: authorization timeout - please try again")

    monkeypatch.setattr(cli, "run_export", failing)

    rc = cli.main(["playlists"])

    assert rc == 1
    assert "authorization timeout" in capsys.readouterr().err


def test_command_is_required(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main([])
    assert exc.value.code == 2
