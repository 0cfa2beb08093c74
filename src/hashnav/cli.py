from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from hashnav.config import RouterConfig, SiteConfig, load_site
from hashnav.env import load_env_chain, router_overrides
from hashnav.errors import ConfigError
from hashnav.logs import setup_logging
from hashnav.render import render_hash

app = typer.Typer(
    add_completion=False,
    help="Hash-routed page assembly utility.",
    pretty_exceptions_show_locals=False,
)


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _load_site_or_exit(site: Path) -> SiteConfig:
    try:
        return load_site(site)
    except ConfigError as exc:
        typer.echo(f"Invalid site file: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def check(
    site: Path = typer.Argument(..., help="Site file with routes and fragments (JSON)"),
) -> None:
    site_config = _load_site_or_exit(site)
    typer.echo(f"Routes: {len(site_config.routes)}")
    typer.echo(f"Fragments: {len(site_config.fragments)}")
    if "404" not in site_config.routes:
        typer.echo("Warning: no 404 route, unknown paths render the built-in not-found page.")


@app.command()
def render(
    site: Path = typer.Argument(..., help="Site file with routes and fragments (JSON)"),
    hash_value: str = typer.Option("#/", "--hash", help="Location hash to render"),
    base_url: str = typer.Option(None, "--base-url", help="Base URL for templates and fragments"),
    root_id: str = typer.Option("root", "--root-id"),
    max_fragment_depth: int = typer.Option(16, "--max-fragment-depth"),
    timeout_seconds: float = typer.Option(None, "--timeout-seconds"),
    log_level: str = typer.Option(None, "--log-level"),
) -> None:
    try:
        settings = router_overrides(load_env_chain(_repo_root()))
    except ConfigError as exc:
        typer.echo(f"Invalid environment: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    cli_values = {
        "base_url": base_url,
        "timeout_seconds": timeout_seconds,
        "log_level": log_level,
    }
    settings.update({name: value for name, value in cli_values.items() if value is not None})
    cfg = RouterConfig(root_id=root_id, max_fragment_depth=max_fragment_depth, **settings)
    setup_logging(cfg.log_level)
    site_config = _load_site_or_exit(site)

    html_text = asyncio.run(render_hash(site=site_config, config=cfg, hash_value=hash_value))
    typer.echo(html_text)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
