"""Tests for the harvester CLI."""

import json
import logging

import httpx
import pytest
from typer.testing import CliRunner

from cli.main import app
from harvester.corpus.store import store_text
from harvester.db import get_connection, init_db
from harvester.db.urls import get_url, upsert_urls
from harvester.scraper.models import RawPage, SitemapEntry

runner = CliRunner()

SITEMAP = "https://example.com/sitemap.xml"


@pytest.fixture
def storage(tmp_path, monkeypatch):
    """Point every storage path at a temporary directory."""
    monkeypatch.setattr("harvester.config.settings.storage_dir", tmp_path)
    monkeypatch.setattr("harvester.config.settings.aggregated_file_override", "")
    monkeypatch.setattr("harvester.config.settings.crawl_interval", 0)
    yield tmp_path
    # `run` attaches handlers bound to the runner's output stream.
    harvester_logger = logging.getLogger("harvester")
    for handler in list(harvester_logger.handlers):
        harvester_logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def sources_file(tmp_path):
    path = tmp_path / "sources.json"
    path.write_text(
        json.dumps({"sources": [{"name": "example", "sitemaps": {SITEMAP: {"selector": ["main"]}}}]}),
        encoding="utf-8",
    )
    return path


def _seed(*urls):
    conn = get_connection()
    init_db(conn)
    upsert_urls(conn, [(u, "2024-01-01 00:00:00") for u in urls])
    conn.close()


def test_db_init(storage):
    result = runner.invoke(app, ["db", "init"])
    assert result.exit_code == 0
    assert "Database ready" in result.stdout
    assert (storage / "harvester.db").exists()


# ---------------------------------------------------------------------------
# config check
# ---------------------------------------------------------------------------

def test_config_check_valid(storage, sources_file):
    result = runner.invoke(app, ["config", "check", "--sources", str(sources_file)])
    assert result.exit_code == 0
    assert "✅ 1 source(s), 1 sitemap rule(s)" in result.stdout


def test_config_check_reports_bad_selector(storage, tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(
        json.dumps({"sources": [{"sitemaps": {SITEMAP: {"selector": ["main", "div[class"]}}}]}),
        encoding="utf-8",
    )
    result = runner.invoke(app, ["config", "check", "--sources", str(path)])
    assert result.exit_code == 1
    assert "div[class" in result.stdout
    assert "'main'" not in result.stdout


def test_config_check_reports_pseudo_element(storage, tmp_path):
    path = tmp_path / "pseudo.json"
    path.write_text(
        json.dumps({"sources": [{"sitemaps": {SITEMAP: {"selector": ["main"], "exclusion": ["p::before"]}}}]}),
        encoding="utf-8",
    )
    result = runner.invoke(app, ["config", "check", "--sources", str(path)])
    assert result.exit_code == 1
    assert "p::before" in result.stdout


def test_config_check_missing_file(storage, tmp_path):
    result = runner.invoke(app, ["config", "check", "--sources", str(tmp_path / "nope.json")])
    assert result.exit_code == 1
    assert "Missing sources file" in result.stdout


# ---------------------------------------------------------------------------
# urls
# ---------------------------------------------------------------------------

def test_urls_list_empty(storage):
    result = runner.invoke(app, ["urls", "list"])
    assert result.exit_code == 0
    assert "No URLs found." in result.stdout


def test_urls_list(storage):
    _seed("https://example.com/a", "https://example.com/b")
    result = runner.invoke(app, ["urls", "list"])
    assert result.exit_code == 0
    assert "[enabled] https://example.com/a" in result.stdout
    assert "https://example.com/b" in result.stdout


def test_urls_disable_and_enable(storage):
    _seed("https://example.com/a")

    result = runner.invoke(app, ["urls", "disable", "https://example.com/a"])
    assert result.exit_code == 0
    assert "✅ https://example.com/a is now disabled" in result.stdout

    listed = runner.invoke(app, ["urls", "list", "--status", "disabled"])
    assert "https://example.com/a" in listed.stdout

    result = runner.invoke(app, ["urls", "enable", "https://example.com/a"])
    assert result.exit_code == 0

    conn = get_connection()
    assert get_url(conn, "https://example.com/a").status == "enabled"
    conn.close()


def test_urls_disable_unknown(storage):
    result = runner.invoke(app, ["urls", "disable", "https://missing.example.com/"])
    assert result.exit_code == 1
    assert "❌ Error: URL not found" in result.stdout


# ---------------------------------------------------------------------------
# scrape / aggregate / run
# ---------------------------------------------------------------------------

def test_scrape_prints_text(storage, monkeypatch):
    def fake_fetch(url):
        return RawPage(url=url, html="<main><p>Hello <b>world</b></p><nav>Menu</nav></main>", status_code=200)

    monkeypatch.setattr("harvester.scraper.fetch_page", fake_fetch)
    result = runner.invoke(
        app, ["scrape", "https://example.com/", "-s", "main", "-x", "nav"]
    )
    assert result.exit_code == 0
    assert "Hello world" in result.stdout
    assert "Menu" not in result.stdout


def test_scrape_no_match(storage, monkeypatch):
    monkeypatch.setattr(
        "harvester.scraper.fetch_page",
        lambda url: RawPage(url=url, html="<div>x</div>", status_code=200),
    )
    result = runner.invoke(app, ["scrape", "https://example.com/", "-s", "main"])
    assert result.exit_code == 1
    assert "No text found." in result.stdout


def test_scrape_fetch_failure(storage, monkeypatch):
    def failing_fetch(url):
        raise httpx.ConnectError("refused")

    monkeypatch.setattr("harvester.scraper.fetch_page", failing_fetch)
    result = runner.invoke(app, ["scrape", "https://example.com/", "-s", "main"])
    assert result.exit_code == 1
    assert "Fetch failed" in result.stdout


def test_aggregate(storage):
    store_text(storage / "text", "https://example.com/a", "Alpha")
    result = runner.invoke(app, ["aggregate"])
    assert result.exit_code == 0
    assert "1 part(s)" in result.stdout
    assert (storage / "aggregated.txt").exists()
    assert (storage / "aggregated_part_1.txt").exists()


def test_run(storage, sources_file, monkeypatch):
    monkeypatch.setattr(
        "harvester.pipeline.fetch_sitemaps",
        lambda sitemap_urls: [SitemapEntry("https://example.com/a", "2024-01-01 00:00:00", SITEMAP)],
    )
    monkeypatch.setattr(
        "harvester.pipeline.fetch_page",
        lambda url: RawPage(url=url, html="<main>Alpha</main>", status_code=200),
    )

    result = runner.invoke(app, ["run", "--sources", str(sources_file)])

    assert result.exit_code == 0
    assert "queued=1  crawled=1  scraped=1  stored=1  parts=1" in result.stdout
    log_text = (storage / "log" / "webscraper.log").read_text(encoding="utf-8")
    assert "https://example.com/a | main | 2024-01-01 00:00:00 | crawled | scraped | stored" in log_text


def test_run_missing_sources(storage, tmp_path):
    result = runner.invoke(app, ["run", "--sources", str(tmp_path / "nope.json")])
    assert result.exit_code == 1
    assert "Missing sources file" in result.stdout
