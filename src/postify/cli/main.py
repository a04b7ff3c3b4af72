from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from postify.config import PostifyConfig, load_config
from postify.errors import AllModelsFailedError, ArticleParseError, PostifyError
from postify.models.post import Platform, Tone
from postify.substrate import Substrate

load_dotenv()

log = logging.getLogger(__name__)

app = typer.Typer(help="Postify CLI")
users_app = typer.Typer(help="User account commands")
models_app = typer.Typer(help="OpenRouter model commands")
app.add_typer(users_app, name="users")
app.add_typer(models_app, name="models")

console = Console()


def _load(verbose: bool = False) -> PostifyConfig:
    from postify.runtime.logging_config import configure_from_config

    config = load_config()
    configure_from_config(config, verbose=verbose)
    return config


def _router(config: PostifyConfig):
    from postify.api.context import build_router

    try:
        return build_router(config)
    except PostifyError as exc:
        console.print(f"[red]{exc.message}[/red]")
        raise typer.Exit(code=1) from None


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host"),
    port: int = typer.Option(3001, "--port"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Start the Postify API server."""
    import uvicorn

    from postify.api.app import create_app

    config = _load(verbose)
    console.print(f"Starting Postify API server on {host}:{port}")
    uvicorn.run(create_app(config), host=host, port=port, reload=False)


@app.command("config-validate")
def config_validate(
    config_path: Path = typer.Option(Path("config.toml"), "--config"),  # noqa: B008
) -> None:
    """Validate config.toml and environment overrides."""
    from pydantic import ValidationError

    try:
        cfg = load_config(config_path)
    except ValidationError as exc:
        console.print("[red]Config validation failed:[/red]")
        for err in exc.errors():
            loc = " → ".join(str(x) for x in err["loc"])
            console.print(f"  {loc}: {err['msg']}")
        raise typer.Exit(code=1) from None

    console.print("[green]Config valid.[/green]")
    console.print(f"  Default model: {cfg.openrouter.default_model}")
    console.print(f"  Prefer free models: {cfg.openrouter.prefer_free_models}")
    console.print(f"  API key configured: {bool(cfg.openrouter.api_key)}")
    console.print(f"  Database: {cfg.substrate.db_path}")
    console.print(f"  Log level: {cfg.runtime.log_level}")


# ── Users ──────────────────────────────────────────────────────────────────


@users_app.command("create")
def users_create(email: str, name: str) -> None:
    """Create a user and print their API key (shown once)."""
    config = _load()

    async def _run() -> None:
        substrate = Substrate(config.substrate.db_path)
        await substrate.initialize()
        try:
            user, api_key = await substrate.users.create_user(email, name)
        except PostifyError as exc:
            console.print(f"[red]{exc.message}[/red]")
            raise typer.Exit(code=1) from None
        console.print(f"Created user [bold]{user.email}[/bold] ({user.user_id})")
        console.print(f"API key: [green]{api_key}[/green]")

    asyncio.run(_run())


@users_app.command("rotate-key")
def users_rotate_key(email: str) -> None:
    """Issue a new API key for a user."""
    config = _load()

    async def _run() -> None:
        substrate = Substrate(config.substrate.db_path)
        await substrate.initialize()
        user = await substrate.users.get_by_email(email)
        if user is None:
            console.print(f"[red]User not found: {email}[/red]")
            raise typer.Exit(code=1)
        api_key = await substrate.users.rotate_api_key(user.user_id)
        console.print(f"New API key for {user.email}: [green]{api_key}[/green]")

    asyncio.run(_run())


# ── Models ─────────────────────────────────────────────────────────────────


@models_app.command("free")
def models_free() -> None:
    """List zero-cost models on OpenRouter."""
    config = _load()
    router = _router(config)

    async def _run() -> None:
        models = await router.get_free_models()
        if not models:
            console.print("No free models found.")
            return
        table = Table(title=f"Free models ({len(models)})")
        table.add_column("id")
        table.add_column("name")
        table.add_column("context", justify="right")
        for m in models:
            table.add_row(m.id, m.name, str(m.context_length))
        console.print(table)

    asyncio.run(_run())


@models_app.command("chain")
def models_chain() -> None:
    """Show the fallback chain generation would use right now."""
    config = _load()
    router = _router(config)

    async def _run() -> None:
        if config.openrouter.prefer_free_models:
            chain = await router.build_fallback_chain()
        else:
            chain = [config.openrouter.default_model]
        for i, model_id in enumerate(chain, start=1):
            console.print(f"{i:>3}. {model_id}")

    asyncio.run(_run())


# ── Generate ───────────────────────────────────────────────────────────────


@app.command()
def generate(
    url: str,
    tone: Tone = typer.Option(Tone.PROFESSIONAL, "--tone"),  # noqa: B008
    platform: list[Platform] = typer.Option(  # noqa: B008
        [Platform.TWITTER, Platform.LINKEDIN], "--platform"
    ),
    hashtag: list[str] = typer.Option([], "--hashtag"),  # noqa: B008
    cta: str | None = typer.Option(None, "--cta"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Generate social posts for an article URL without saving them."""
    from postify.services.article import ArticleService
    from postify.services.generator import PostGenerator

    config = _load(verbose)
    router = _router(config)
    articles = ArticleService(
        max_text_length=config.article.max_text_length,
        timeout=config.article.fetch_timeout_s,
    )
    generator = PostGenerator(articles, router)

    async def _run() -> None:
        try:
            outcome = await generator.generate(
                url=url, tone=tone, platforms=platform, hashtags=hashtag, cta=cta
            )
        except (ArticleParseError, AllModelsFailedError) as exc:
            console.print(f"[red]{exc.message}[/red]")
            raise typer.Exit(code=1) from None

        console.print(f"[bold]{outcome.article.title}[/bold] ({outcome.article.site_name})")
        console.print(f"\n{outcome.result.content.summary}\n")
        for name, text in outcome.result.content.posts.items():
            console.print(Panel(text, title=name))
        console.print(f"[dim]model: {outcome.result.model_id}[/dim]")

    asyncio.run(_run())


if __name__ == "__main__":
    app()
