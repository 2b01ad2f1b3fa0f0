import secrets
from typing import Optional

from dotenv import load_dotenv
import requests
import typer

from gateway.config import ConfigurationError, load_settings

load_dotenv()

app = typer.Typer()


@app.command()
def serve(host: Optional[str] = None, port: Optional[int] = None):
    """Start the proxy (settings from the environment / .env)."""
    from gateway.main import run

    overrides = {k: v for k, v in {"host": host, "port": port}.items() if v is not None}
    try:
        settings = load_settings().with_overrides(**overrides)
    except ConfigurationError as exc:
        print(f"!!! Refusing to start: {exc}")
        raise typer.Exit(code=1)

    run(settings)


@app.command()
def check_config():
    """Show which secrets are configured. Exits 1 if startup would be refused."""
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        print(f"!!! Invalid configuration: {exc}")
        raise typer.Exit(code=1)

    for name, state in settings.describe().items():
        print(f"{name}: {state}")
    print("--> Configuration OK")


@app.command()
def gen_secret(length: int = 32):
    """Generate a value for PROXY_API_KEY."""
    print(secrets.token_urlsafe(length))


@app.command()
def ping(url: str = "http://localhost:3000", timeout: float = 3.0):
    """Call /health on a running proxy."""
    try:
        resp = requests.get(f"{url.rstrip('/')}/health", timeout=timeout)
    except requests.RequestException as exc:
        print(f"!!! Proxy unreachable: {exc}")
        raise typer.Exit(code=1)

    if not resp.ok:
        print(f"!!! Health check failed: HTTP {resp.status_code}")
        raise typer.Exit(code=1)

    data = resp.json()
    print(f"Status: {data.get('status')}")
    print(f"Uptime: {data.get('uptime', 0):.1f}s")


if __name__ == "__main__":
    app()
