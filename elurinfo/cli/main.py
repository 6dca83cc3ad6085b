import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
import typer
from rich.console import Console
from rich.table import Table

from elurinfo.config.settings import get_settings

app = typer.Typer(help="CLI para consultar la API de ElurInfo y mantener la caché")
console = Console()


def _api_url() -> str:
    return get_settings().elurinfo_api_url.rstrip("/")


def _request(method: str, path: str, **kwargs) -> Dict[str, Any]:
    """
    Call the API and return the JSON body.

    Prints the error and exits with status 1 on failure.
    """
    try:
        response = httpx.request(method, f"{_api_url()}{path}", timeout=30.0, **kwargs)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as e:
        try:
            message = e.response.json().get("message", e.response.text)
        except ValueError:
            message = e.response.text
        console.print(f"[bold red]Error HTTP {e.response.status_code}: {message}")
    except httpx.RequestError as e:
        console.print(f"[bold red]Error de conexión con {_api_url()}: {str(e)}")
    raise typer.Exit(code=1)


def _freshness_line(body: Dict[str, Any]) -> str:
    if not body.get("valid", True):
        state = "[red]degradado[/]"
    elif body.get("cached"):
        state = "[yellow]en caché[/]"
    else:
        state = "[green]actualizado[/]"
    return f"Fuente: [cyan]{body.get('source')}[/] · {state} · Última actualización: [cyan]{body.get('lastUpdate')}[/]"


def _save(body: Dict[str, Any], output_file: Optional[Path]) -> None:
    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(body, f, indent=2, ensure_ascii=False)
        console.print(f"[green]Resultados guardados en [bold]{output_file}[/]")


@app.command()
def status():
    """
    Muestra el estado de la API.
    """
    with console.status("[bold green]Consultando estado..."):
        health = _request("GET", "/health")

    console.print(f"Estado: [bold green]{health['status']}[/]")
    console.print(f"Versión: [cyan]{health['version']}[/]")
    console.print(f"Base de datos: [cyan]{health['database']}[/]")
    console.print(f"Tiempo activo: [cyan]{health['uptime']}s[/]")


@app.command()
def avalanche(
    zone: Optional[str] = typer.Argument(None, help="Zona (ej: 'Pirineo Aragonés'); todas si se omite"),
    output_file: Optional[Path] = typer.Option(None, help="Archivo para guardar la respuesta en JSON"),
):
    """
    Muestra los boletines de avalanchas.
    """
    path = f"/avalancha/zone/{zone}" if zone else "/avalancha"
    body = _request("GET", path)
    bulletins = body["data"] if isinstance(body["data"], list) else [body["data"]]

    table = Table(show_header=True, header_style="bold green")
    table.add_column("Zona")
    table.add_column("Riesgo")
    table.add_column("Descripción")
    for bulletin in bulletins:
        table.add_row(
            bulletin.get("zone", "-"),
            str(bulletin.get("risk_level", "-")),
            bulletin.get("description", "-"),
        )

    console.print(table)
    console.print(_freshness_line(body))
    _save(body, output_file)


@app.command()
def mountain(
    zone: Optional[str] = typer.Argument(None, help="Zona de montaña; todas si se omite"),
    output_file: Optional[Path] = typer.Option(None, help="Archivo para guardar la respuesta en JSON"),
):
    """
    Muestra las predicciones de montaña.
    """
    path = f"/montana/zone/{zone}" if zone else "/montana"
    body = _request("GET", path)
    forecasts = body["data"] if isinstance(body["data"], list) else [body["data"]]

    table = Table(show_header=True, header_style="bold green")
    table.add_column("Zona")
    table.add_column("Válida para")
    table.add_column("Resumen")
    for forecast in forecasts:
        data = forecast.get("forecast_data")
        summary = data.get("descripcion", "-") if isinstance(data, dict) else "-"
        table.add_row(forecast["zone"], forecast.get("valid_date") or "-", summary)

    console.print(table)
    console.print(_freshness_line(body))
    _save(body, output_file)


@app.command()
def municipal(
    municipality_id: str = typer.Argument(..., help="Código INE del municipio (ej: 22015)"),
    output_file: Optional[Path] = typer.Option(None, help="Archivo para guardar la respuesta en JSON"),
):
    """
    Muestra la predicción de un municipio.
    """
    body = _request("GET", f"/municipio/{municipality_id}")
    forecast = body["data"]
    info = forecast["municipality_info"]

    console.print(f"\n[bold]{forecast['municipality_name']}[/] ({info['province']}, {info['zone']})")
    console.print(f"Válida para: [cyan]{forecast.get('valid_date')}[/]")
    data = forecast.get("forecast_data")
    if isinstance(data, dict) and data.get("descripcion"):
        console.print(data["descripcion"])
    console.print(_freshness_line(body))
    _save(body, output_file)


@app.command()
def snow(
    area: Optional[str] = typer.Argument(None, help="Área (0: Pirineo Catalán, 1: Pirineo Navarro y Aragonés)"),
    history: bool = typer.Option(False, help="Mostrar el histórico del área"),
    limit: int = typer.Option(30, help="Número máximo de informes del histórico"),
    output_file: Optional[Path] = typer.Option(None, help="Archivo para guardar la respuesta en JSON"),
):
    """
    Muestra los informes nivológicos.
    """
    if history and area is None:
        console.print("[bold red]El histórico requiere un área.")
        raise typer.Exit(code=1)

    if history:
        body = _request("GET", f"/snow-science/{area}/history", params={"limit": limit})
    elif area is not None:
        body = _request("GET", f"/snow-science/{area}")
    else:
        body = _request("GET", "/snow-science")
    reports = body["data"] if isinstance(body["data"], list) else [body["data"]]

    table = Table(show_header=True, header_style="bold green")
    table.add_column("Área")
    table.add_column("Elaborado")
    table.add_column("Actualizado")
    for report in reports:
        table.add_row(
            report.get("area") or "-",
            report.get("fechaElaboracion") or "-",
            report.get("fechaActualizacion") or "-",
        )

    console.print(table)
    if "cached" in body:
        console.print(_freshness_line(body))
    _save(body, output_file)


@app.command()
def refresh(
    category: str = typer.Argument(..., help="Categoría: avalancha, montana, municipio o snow-science"),
    key: Optional[str] = typer.Option(None, help="Clave a refrescar; todas si se omite"),
):
    """
    Fuerza la actualización de una categoría.
    """
    if category not in ("avalancha", "montana", "municipio", "snow-science"):
        console.print(f"[bold red]Categoría desconocida: {category}")
        raise typer.Exit(code=1)

    with console.status(f"[bold green]Refrescando {category}..."):
        body = _request("POST", f"/{category}/refresh", json={"key": key} if key else None)

    count = body.get("count")
    if count is not None:
        console.print(f"[green]{count} registros refrescados")
    else:
        console.print("[green]Registro refrescado")
    console.print(_freshness_line(body))


async def _run_sweep() -> Dict[str, int]:
    from elurinfo.bootstrap import create_cache, create_store
    from elurinfo.providers.manager import create_provider_manager

    settings = get_settings()
    providers = create_provider_manager(settings)
    store = await create_store(settings)
    try:
        cache = create_cache(settings, store, providers)
        return await cache.sweep_all()
    finally:
        await providers.close()
        await store.close()


@app.command()
def sweep():
    """
    Elimina los registros caducados directamente en la base de datos.
    """
    with console.status("[bold green]Limpiando registros caducados..."):
        result = asyncio.run(_run_sweep())

    table = Table(show_header=True, header_style="bold green")
    table.add_column("Categoría")
    table.add_column("Eliminados")
    for category, count in result.items():
        table.add_row(category, str(count))
    console.print(table)


def main():
    app()


if __name__ == "__main__":
    main()
