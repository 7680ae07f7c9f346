from __future__ import annotations

import pandas as pd
import pytest

from impactdeck import cli
from impactdeck.io.models import DetectedFonts, LogoResult


def test_parse_args_requires_one_source():
    with pytest.raises(SystemExit):
        cli.parse_args([])
    with pytest.raises(SystemExit):
        cli.parse_args(["--url", "a.org", "--input", "urls.txt"])
    args = cli.parse_args(["--url", "a.org", "--concurrency", "5"])
    assert args.url == "a.org"
    assert args.concurrency == 5


def test_read_input_skips_blank_and_comment_lines(tmp_path):
    path = tmp_path / "urls.txt"
    path.write_text("\ufeffacme.org\n\n# later\nhttps://b.org\n", encoding="utf-8")
    assert cli.read_input(path) == ["acme.org", "https://b.org"]
    with pytest.raises(FileNotFoundError):
        cli.read_input(tmp_path / "missing.txt")


def test_make_slug():
    assert cli.make_slug("Acme Food Bank!") == "acme-food-bank"
    assert cli.make_slug("www.acme.org") == "www-acme-org"
    assert cli.make_slug("***") == "deck"


def test_run_table_written_as_parquet(tmp_path, capsys):
    rows = [
        {"slug": "a", "url": "a.org", "status": "success"},
        {"slug": "b", "url": "b.org", "status": "failed"},
    ]
    cli._write_run_table(rows, tmp_path)
    df = pd.read_parquet(tmp_path / "runs.parquet")
    assert list(df["slug"]) == ["a", "b"]
    assert "1 succeeded" in capsys.readouterr().out


def test_debug_logo_prints_discovery(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(
        cli,
        "discover_logo",
        lambda url, domain: LogoResult(
            logo_url="https://acme.org/logo.png",
            logo_source="scraper",
            detected_fonts=DetectedFonts(heading="Gotham"),
        ),
    )
    monkeypatch.chdir(tmp_path)
    code = cli.main(["--url", "acme.org", "--debug-logo", "--out", str(tmp_path / "out")])
    out = capsys.readouterr().out
    assert code == 0
    assert "[logo] acme.org: scraper -> https://acme.org/logo.png" in out
    assert "heading=Gotham" in out
