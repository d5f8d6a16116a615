"""
Cooperativa CLI.

Command-line front-end over the data store: dashboards, stock alerts,
reports, losses and the reminder calendar, plus the everyday mutations.
Works against the configured storage backend, or against the REST API
when SYNC_MODE=remote.
"""

import concurrent.futures
import sys
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterator, Optional, Sequence

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent))

import typer
from rich.console import Console
from rich.table import Table

from shared.config.constants import (
    ALL_ROLES_FILTER,
    DEFAULT_ROLE,
    HarvestCategory,
    InventoryCategory,
    LossSourceType,
    UserRole,
)
from shared.config.logging import setup_logging
from shared.config.settings import settings
from data_store.forms import format_time, parse_date, parse_quantity, parse_reminder_schedule
from data_store.models import HarvestInput, InventoryItemInput, LossInput, MutationResult, ReminderInput
from data_store.service import DataService, RemoteDataService, build_data_service
from data_store.views import (
    build_calendar,
    build_dashboard_summary,
    build_losses_view,
    build_report,
    build_stock_alerts,
    loss_source_status,
)
from data_store.views.calendar import WEEKDAY_LABELS
from data_store.views.formatting import format_clp, format_date, format_percentage, format_quantity

app = typer.Typer(
    name="cooperativa",
    help="Cosechas, inventario, mermas y recordatorios de la cooperativa",
    add_completion=False,
)
console = Console()

CLI_VERSION = "0.1.0"

REJECTION_MESSAGES = {
    "not_found": "No existe un registro con ese id",
    "invalid_quantity": "La cantidad debe ser mayor que cero",
    "source_not_found": "El origen de la merma no existe",
    "exceeds_stock": "La merma supera el stock disponible",
    "unsupported": "Operación no soportada en modo remoto",
}


@app.callback()
def main():
    """Cooperativa command line."""
    setup_logging()


# =============================================================================
# Helpers
# =============================================================================


@contextmanager
def open_store() -> Iterator[DataService]:
    """Build the configured store; in remote mode wait for the first sync and close it afterwards."""
    data = build_data_service()
    try:
        if isinstance(data, RemoteDataService) and not data.drain(timeout=settings.api_timeout_seconds):
            console.print("[yellow]La API no respondió a tiempo; los datos pueden estar incompletos[/yellow]")
        yield data
    finally:
        if isinstance(data, RemoteDataService):
            data.close()


def fail(message: str) -> None:
    console.print(f"[red]✗ {message}[/red]")
    raise typer.Exit(1)


def finish(result: MutationResult, message: str) -> None:
    """Report the outcome of a mutation, waiting for the API in remote mode."""
    if not result.changed:
        fail(REJECTION_MESSAGES.get(result.reason or "", "Operación rechazada"))

    if result.pending is not None:
        try:
            confirmed = result.pending.result(timeout=settings.api_timeout_seconds)
        except concurrent.futures.TimeoutError:
            confirmed = False
        if not confirmed:
            fail("La API no confirmó el cambio")
    elif result.persisted is False:
        console.print("[yellow]El cambio se aplicó pero no se pudo guardar[/yellow]")

    console.print(f"[green]✓ {message}[/green]")


def resolve(items: Sequence[Any], key: str, what: str) -> Any:
    """Find an entity by id or by an unambiguous id prefix (as shown in the tables)."""
    for item in items:
        if item.id == key:
            return item
    matches = [item for item in items if item.id.startswith(key)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        fail(f"No existe {what} con id '{key}'")
    fail(f"El id '{key}' es ambiguo ({len(matches)} coincidencias)")


def quantity_arg(text: str, *, allow_zero: bool = True) -> float:
    value = parse_quantity(text, allow_zero=allow_zero)
    if value is None:
        fail(f"Cantidad inválida: '{text}'")
    return value


def day_arg(text: Optional[str], default: datetime) -> datetime:
    if text is None:
        return default
    day = parse_date(text)
    if day is None:
        fail(f"Fecha inválida: '{text}' (use AAAA-MM-DD)")
    return datetime(day.year, day.month, day.day)


def short_id(entity_id: str) -> str:
    return entity_id[:8]


def recorded_by(entity: Any) -> str:
    label = entity.recorded_by.label
    if entity.recorded_by_partner_name:
        return f"{label} ({entity.recorded_by_partner_name})"
    return label


def stock_state(critical: bool) -> str:
    return "[red]⚠ Crítico[/red]" if critical else "[green]OK[/green]"


# =============================================================================
# View Commands
# =============================================================================


@app.command()
def dashboard():
    """Show the dashboard summary."""
    with open_store() as data:
        summary = build_dashboard_summary(
            data.harvests_snapshot, data.inventory_snapshot, settings.critical_stock_threshold
        )

    table = Table(title="Panel de la cooperativa")
    table.add_column("Métrica", style="cyan")
    table.add_column("Valor", style="green", justify="right")
    table.add_row("Cosechas registradas", str(summary.total_harvests))
    table.add_row("Cantidad cosechada", format_quantity(summary.total_harvest_quantity))
    table.add_row("Insumos", str(summary.inventory_count))
    table.add_row("Insumos con stock saludable", str(summary.healthy_inventory))
    table.add_row("Insumos críticos", str(len(summary.critical_items)))
    table.add_row("Margen promedio", format_percentage(summary.economic_stats.average_margin))
    console.print(table)

    if summary.critical_items:
        critical = Table(title="Insumos críticos")
        critical.add_column("Insumo", style="red")
        critical.add_column("Cantidad", justify="right")
        for item in summary.critical_items:
            critical.add_row(item.name, format_quantity(item.quantity))
        console.print(critical)

    recent = Table(title="Cosechas recientes")
    recent.add_column("Id", style="dim")
    recent.add_column("Cultivo", style="cyan")
    recent.add_column("Categoría")
    recent.add_column("Cantidad", justify="right")
    recent.add_column("Fecha")
    for harvest in summary.recent_harvests:
        recent.add_row(
            short_id(harvest.id),
            harvest.crop,
            harvest.category.value,
            format_quantity(harvest.quantity),
            format_date(harvest.date),
        )
    console.print(recent)

    by_category = Table(title="Stock por categoría")
    by_category.add_column("Categoría", style="cyan")
    by_category.add_column("Total", justify="right")
    for stat in summary.stock_by_category:
        by_category.add_row(stat.category, format_quantity(stat.total))
    console.print(by_category)


@app.command()
def alerts(
    critical_only: bool = typer.Option(False, "--critical-only", "-c", help="Show only critical stock"),
):
    """Show inventory and harvest stock, lowest first."""
    with open_store() as data:
        view = build_stock_alerts(data.inventory_snapshot, data.harvests_snapshot, settings.critical_stock_threshold)

    table = Table(title=f"Alertas de stock ({view.critical_count} críticas)")
    table.add_column("Nombre", style="cyan")
    table.add_column("Categoría")
    table.add_column("Cantidad", justify="right")
    table.add_column("Estado")
    for alert in view.ordered:
        if critical_only and not alert.critical:
            continue
        table.add_row(alert.name, alert.category, format_quantity(alert.quantity), stock_state(alert.critical))
    console.print(table)


@app.command()
def report():
    """Show the stock, harvest and losses report."""
    with open_store() as data:
        result = build_report(
            data.inventory_snapshot,
            data.harvests_snapshot,
            data.losses_snapshot,
            settings.critical_stock_threshold,
        )

    summary = Table(title="Reporte de stock")
    summary.add_column("Métrica", style="cyan")
    summary.add_column("Valor", style="green", justify="right")
    summary.add_row("Stock total", format_quantity(result.total_stock))
    summary.add_row("Stock de inventario", format_quantity(result.inventory_stock))
    summary.add_row("Stock de cosechas", format_quantity(result.harvest_stock))
    summary.add_row("Promedio por insumo", format_quantity(result.average_stock))
    summary.add_row("Insumos saludables", str(result.healthy_count))
    summary.add_row("Insumos críticos", str(len(result.critical_items)))
    if result.highest_stock is not None:
        summary.add_row("Mayor stock", f"{result.highest_stock.name} ({format_quantity(result.highest_stock.quantity)})")
    if result.lowest_stock is not None:
        summary.add_row("Menor stock", f"{result.lowest_stock.name} ({format_quantity(result.lowest_stock.quantity)})")
    summary.add_row("Mermas", format_quantity(result.losses_summary.total_quantity))
    console.print(summary)

    categories = Table(title="Inventario por categoría")
    categories.add_column("Categoría", style="cyan")
    categories.add_column("Total", justify="right")
    for category, total in result.category_totals.items():
        categories.add_row(category, format_quantity(total))
    console.print(categories)

    if result.harvest_profit.entries:
        profit = Table(title="Rentabilidad de cosechas")
        profit.add_column("Cultivo", style="cyan")
        profit.add_column("Compra", justify="right")
        profit.add_column("Venta", justify="right")
        profit.add_column("Margen", justify="right")
        for entry in result.harvest_profit.entries:
            profit.add_row(
                entry.crop,
                format_clp(entry.purchase_price_clp),
                format_clp(entry.sale_price_clp),
                format_percentage(entry.margin),
            )
        console.print(profit)


@app.command()
def losses(
    role: str = typer.Option(ALL_ROLES_FILTER, "--role", "-r", help="Role filter (todos, presidente, socio, ...)"),
):
    """Show recorded losses and their distribution by product."""
    if role != ALL_ROLES_FILTER and role not in {member.value for member in UserRole}:
        fail(f"Rol desconocido: '{role}'")

    with open_store() as data:
        view = build_losses_view(data.losses_snapshot, role)
        inventory, harvests = data.inventory_snapshot, data.harvests_snapshot

    table = Table(title=f"Mermas ({format_quantity(view.total_quantity)} unidades)")
    table.add_column("Id", style="dim")
    table.add_column("Fecha")
    table.add_column("Producto", style="cyan")
    table.add_column("Cantidad", justify="right")
    table.add_column("Motivo")
    table.add_column("Registrado por")
    table.add_column("Origen")
    for loss in view.losses:
        status = loss_source_status(loss, inventory, harvests)
        if status is None:
            origin = "-"
        elif status.resolved:
            origin = f"{status.label}: {status.name} (quedan {format_quantity(status.remaining)})"
        else:
            origin = f"{status.label}: eliminado"
        table.add_row(
            short_id(loss.id),
            format_date(loss.date),
            loss.product_name,
            format_quantity(loss.quantity),
            loss.reason,
            recorded_by(loss),
            origin,
        )
    console.print(table)

    if view.distribution:
        chart = Table(title="Distribución por producto")
        chart.add_column("Producto", style="cyan")
        chart.add_column("Total", justify="right")
        chart.add_column("Porcentaje", justify="right")
        for entry in view.distribution:
            chart.add_row(entry.label, format_quantity(entry.total), format_percentage(entry.percentage))
        console.print(chart)


@app.command()
def calendar(
    month: Optional[str] = typer.Option(None, "--month", "-m", help="Month to show (AAAA-MM)"),
):
    """Show the reminder calendar and upcoming reminders."""
    today = date.today()
    if month is None:
        first = today.replace(day=1)
    else:
        first = parse_date(f"{month}-01")
        if first is None:
            fail(f"Mes inválido: '{month}' (use AAAA-MM)")

    with open_store() as data:
        view = build_calendar(first, data.reminders_snapshot, today, settings.upcoming_reminders_limit)

    grid = Table(title=view.month_label, caption=f"Hoy: {view.today_label}")
    for label in WEEKDAY_LABELS:
        grid.add_column(label, justify="right")
    for week in view.weeks:
        cells = []
        for day in week:
            cell = str(day.label)
            if day.reminders:
                cell += f" ({len(day.reminders)})"
            if day.is_today:
                cell = f"[bold green]{cell}[/bold green]"
            elif not day.in_current_month:
                cell = f"[dim]{cell}[/dim]"
            cells.append(cell)
        grid.add_row(*cells)
    console.print(grid)

    upcoming = Table(title="Próximos recordatorios")
    upcoming.add_column("Id", style="dim")
    upcoming.add_column("Fecha")
    upcoming.add_column("Hora")
    upcoming.add_column("Título", style="cyan")
    upcoming.add_column("Nota")
    for reminder in view.upcoming_reminders:
        upcoming.add_row(
            short_id(reminder.id),
            format_date(reminder.scheduled_at),
            format_time(reminder.scheduled_at),
            reminder.title,
            reminder.note or "",
        )
    console.print(upcoming)


# =============================================================================
# Mutation Commands
# =============================================================================


@app.command()
def add_harvest(
    crop: str = typer.Argument(..., help="Crop name"),
    quantity: str = typer.Argument(..., help="Harvested quantity"),
    category: HarvestCategory = typer.Option(HarvestCategory.PRIMERA, help="Quality grade"),
    harvest_date: Optional[str] = typer.Option(None, "--date", help="Harvest date (AAAA-MM-DD), default now"),
    role: UserRole = typer.Option(DEFAULT_ROLE, "--role", help="Role recording the harvest"),
    partner: Optional[str] = typer.Option(None, "--partner", help="Partner name (socio only)"),
    purchase_price: Optional[str] = typer.Option(None, "--purchase-price", help="Purchase price in CLP"),
    sale_price: Optional[str] = typer.Option(None, "--sale-price", help="Sale price in CLP"),
):
    """Record a harvest lot."""
    amount = quantity_arg(quantity)
    with open_store() as data:
        result = data.add_harvest(
            HarvestInput(
                crop=crop,
                quantity=amount,
                date=day_arg(harvest_date, data.now()),
                category=category,
                recorded_by=role,
                recorded_by_partner_name=partner,
                purchase_price_clp=purchase_price,
                sale_price_clp=sale_price,
            )
        )
        finish(result, f"Cosecha registrada: {crop}")


@app.command()
def add_inventory(
    name: str = typer.Argument(..., help="Item name"),
    quantity: str = typer.Argument(..., help="Units in stock"),
    category: InventoryCategory = typer.Option(InventoryCategory.PLANTA, help="Item category"),
    role: UserRole = typer.Option(DEFAULT_ROLE, "--role", help="Role recording the item"),
    partner: Optional[str] = typer.Option(None, "--partner", help="Partner name (socio only)"),
):
    """Add an inventory item."""
    amount = quantity_arg(quantity)
    with open_store() as data:
        result = data.add_inventory_item(
            InventoryItemInput(
                name=name,
                quantity=amount,
                category=category,
                recorded_by=role,
                recorded_by_partner_name=partner,
            )
        )
        finish(result, f"Insumo agregado: {name}")


@app.command()
def adjust_stock(
    entity_id: str = typer.Argument(..., help="Inventory item or harvest id (prefix allowed)"),
    quantity: str = typer.Argument(..., help="New stock"),
    source: LossSourceType = typer.Option(LossSourceType.INVENTORY, "--source", help="inventory or harvest"),
    role: Optional[UserRole] = typer.Option(None, "--role", help="Role making the change"),
    partner: Optional[str] = typer.Option(None, "--partner", help="Partner name (socio only)"),
):
    """Set the stock of an inventory item or a harvest lot."""
    amount = quantity_arg(quantity)
    with open_store() as data:
        if source is LossSourceType.INVENTORY:
            item = resolve(data.inventory_snapshot, entity_id, "un insumo")
            result = data.update_inventory_quantity(item.id, amount, role, partner)
            finish(result, f"Stock de {item.name} actualizado")
        else:
            harvest = resolve(data.harvests_snapshot, entity_id, "una cosecha")
            result = data.update_harvest_quantity(harvest.id, amount, role, partner)
            finish(result, f"Stock de {harvest.crop} actualizado")


@app.command()
def record_loss(
    quantity: str = typer.Argument(..., help="Lost units"),
    reason: str = typer.Argument(..., help="Reason for the loss"),
    product: Optional[str] = typer.Option(None, "--product", help="Product name, default the source's name"),
    source: Optional[LossSourceType] = typer.Option(None, "--source", help="inventory or harvest"),
    source_id: Optional[str] = typer.Option(None, "--source-id", help="Id of the depleted item (prefix allowed)"),
    loss_date: Optional[str] = typer.Option(None, "--date", help="Loss date (AAAA-MM-DD), default now"),
    role: UserRole = typer.Option(DEFAULT_ROLE, "--role", help="Role recording the loss"),
    partner: Optional[str] = typer.Option(None, "--partner", help="Partner name (socio only)"),
):
    """Record a loss (merma) and deplete its source's stock."""
    amount = quantity_arg(quantity, allow_zero=False)
    if (source is None) != (source_id is None):
        fail("--source y --source-id deben indicarse juntos")

    with open_store() as data:
        resolved_id = None
        if source is LossSourceType.INVENTORY:
            item = resolve(data.inventory_snapshot, source_id, "un insumo")
            resolved_id, product = item.id, product or item.name
        elif source is LossSourceType.HARVEST:
            harvest = resolve(data.harvests_snapshot, source_id, "una cosecha")
            resolved_id, product = harvest.id, product or harvest.crop
        if not product:
            fail("Indique el producto con --product")

        result = data.register_loss(
            LossInput(
                product_name=product,
                quantity=amount,
                reason=reason,
                date=day_arg(loss_date, data.now()),
                recorded_by=role,
                recorded_by_partner_name=partner,
                source_type=source,
                source_id=resolved_id,
            )
        )
        finish(result, f"Merma registrada: {product}")


@app.command()
def add_reminder(
    title: str = typer.Argument(..., help="Reminder title"),
    day: str = typer.Argument(..., help="Date (AAAA-MM-DD)"),
    time: Optional[str] = typer.Option(None, "--time", help="Time (HH:MM), default 09:00"),
    note: Optional[str] = typer.Option(None, "--note", help="Optional note"),
):
    """Schedule a reminder."""
    scheduled_at = parse_reminder_schedule(day, time)
    if scheduled_at is None:
        fail("Fecha u hora inválida (use AAAA-MM-DD y HH:MM)")

    with open_store() as data:
        result = data.add_reminder(ReminderInput(title=title, scheduled_at=scheduled_at, note=note))
        finish(result, f"Recordatorio agendado para el {format_date(scheduled_at)} a las {format_time(scheduled_at)}")


@app.command()
def remove_reminder(
    reminder_id: str = typer.Argument(..., help="Reminder id (prefix allowed)"),
):
    """Delete a reminder."""
    with open_store() as data:
        reminder = resolve(data.reminders_snapshot, reminder_id, "un recordatorio")
        finish(data.remove_reminder(reminder.id), f"Recordatorio eliminado: {reminder.title}")


# =============================================================================
# Server Commands
# =============================================================================


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(settings.rest_api_port, help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the REST API server."""
    import uvicorn

    console.print(f"[blue]Starting REST API on {host}:{port}[/blue]")
    uvicorn.run("rest_api.main:app", host=host, port=port, reload=reload)


@app.command()
def version():
    """Show version information."""
    table = Table(title="Cooperativa Version")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")

    table.add_row("CLI", CLI_VERSION)
    table.add_row("Sync mode", settings.sync_mode)
    table.add_row("Storage", settings.storage_backend)
    table.add_row("Python", sys.version.split()[0])

    console.print(table)


if __name__ == "__main__":
    app()
