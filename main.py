"""Stundenplan-Konsole — Haupt-CLI.

Verwendung:
  python main.py config init                      Standard-Konfiguration anlegen
  python main.py config show                      Konfiguration anzeigen
  python main.py config edit                      Konfiguration bearbeiten
  python main.py timetable class <Klasse> <Sek.>  Klassen-Stundenplan
  python main.py timetable teacher <ID>           Lehrer-Stundenplan
  python main.py timetable room <ID>              Raum-Belegung
  python main.py timetable delete <ID>            Stundenplan löschen
  python main.py substitute list                  Aktive Vertretungen
  python main.py substitute assign                Vertretung zuweisen (interaktiv)
  python main.py substitute remove <Nr.>          Vertretung zurücknehmen
  python main.py reference teachers|rooms|classes|years

Mit --demo läuft alles gegen einen Demo-Server im Speicher.
"""

import logging
import sys
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Optional

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from api.errors import ApiError
from substitution.workflow import SubstitutionValidationError

console = Console()


# ─── KONTEXT ──────────────────────────────────────────────────────────────────

class AppContext:
    """Konfiguration und Server-Anbindung, erst bei Bedarf geladen."""

    def __init__(self, demo: bool = False, config=None, service=None):
        self.demo = demo
        self._config = config
        self._service = service

    @property
    def config(self):
        if self._config is None:
            self._config = _load_config_or_abort(allow_default=self.demo)
        return self._config

    @property
    def service(self):
        if self._service is None:
            if self.demo:
                from data.demo_service import DemoTimetableService
                self._service = DemoTimetableService(
                    self.config.period_grid,
                    academic_year=self.config.academic_year,
                )
            else:
                from api.client import TimetableApiClient
                self._service = TimetableApiClient(self.config.api)
        return self._service


pass_app = click.make_pass_decorator(AppContext, ensure=True)


def _load_config_or_abort(allow_default: bool = False):
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from config.defaults import default_console_config
    from config.manager import ConfigManager
    mgr = ConfigManager()
    if mgr.first_run_check():
        if allow_default:
            return mgr.apply_env_overrides(default_console_config())
        console.print(
            "[red]Keine Konfiguration gefunden.[/red]\n"
            "Führen Sie zunächst [bold]python main.py config init[/bold] aus."
        )
        sys.exit(1)
    try:
        return mgr.load()
    except ValueError as e:
        console.print(f"[red bold]{e}[/red bold]")
        sys.exit(1)


@contextmanager
def _report_errors():
    """Server- und Eingabefehler als Meldung ausgeben, Exit-Code 1."""
    try:
        yield
    except SubstitutionValidationError as e:
        console.print(f"[red]Eingabe ungültig:[/red] {e}")
        sys.exit(1)
    except ApiError as e:
        console.print(f"[red bold]Serverfehler:[/red bold] {e}")
        sys.exit(1)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anlegen, anzeigen oder bearbeiten."""


@cmd_config.command("init")
def config_init():
    """Legt die Standard-Konfiguration an (lokaler Entwicklungsserver)."""
    from config.defaults import default_console_config
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check():
        console.print("[yellow]Eine Konfiguration existiert bereits.[/yellow]")
        if not click.confirm("Überschreiben?", default=False):
            return
    mgr.save(default_console_config())
    console.print(
        "Server-Zugang anpassen mit [bold]python main.py config edit[/bold] "
        "oder TIMETABLE_API_URL / TIMETABLE_API_TOKEN setzen."
    )


@cmd_config.command("show")
@pass_app
def config_show(app: AppContext):
    """Zeigt die aktuelle Konfiguration an."""
    from config.manager import ConfigManager
    ConfigManager().show(app.config)


@cmd_config.command("edit")
def config_edit():
    """Bearbeitet die Konfiguration interaktiv."""
    from config.manager import ConfigManager
    config = _load_config_or_abort()
    ConfigManager().edit_interactive(config)


# ─── TIMETABLE ────────────────────────────────────────────────────────────────

@click.group("timetable")
def cmd_timetable():
    """Stundenpläne anzeigen (Klasse, Lehrkraft, Raum) und löschen."""


def _show_grid(app: AppContext, grid, export: Optional[Path]) -> None:
    from export.excel_export import GridExcelExporter
    from export.tui_renderer import build_rich_table

    if grid.is_empty:
        console.print(f"[yellow]{grid.title}: keine Stunden eingetragen.[/yellow]")
    console.print(build_rich_table(grid))
    if export is not None:
        path = GridExcelExporter(app.config.school_name).export([grid], export)
        console.print(f"[green]✓[/green] Excel gespeichert: {path}")


@cmd_timetable.command("class")
@click.argument("klasse")
@click.argument("sektion")
@click.option("--year", default=None, help="Schuljahr (Standard: aus der Config).")
@click.option("--date", "week_of", type=click.DateTime(formats=["%Y-%m-%d"]),
              default=None, help="Vertretungen dieser Woche einblenden (Standard: heute).")
@click.option("--export", type=click.Path(path_type=Path), default=None,
              help="Zusätzlich als Excel-Datei speichern.")
@pass_app
def timetable_class(app: AppContext, klasse: str, sektion: str, year: Optional[str],
                    week_of, export: Optional[Path]):
    """Zeigt den aktiven Stundenplan einer Klasse/Sektion."""
    from models.timetable import pick_active
    from schedule.grid import build_grid
    from schedule.normalizer import normalize

    config = app.config
    year = year or config.academic_year
    with _report_errors():
        timetable = pick_active(app.service.get_timetables(klasse, sektion, year))
        if timetable is None:
            console.print(
                f"[yellow]Kein Stundenplan für {klasse} - {sektion} ({year}) gefunden.[/yellow]"
            )
            return
        substitutions = app.service.get_substitutes()

    slot_map = normalize(timetable.to_view(), config.period_grid)
    grid = build_grid(
        config.period_grid,
        slot_map,
        substitutions=substitutions,
        timetable_id=timetable.id,
        week_of=week_of.date() if week_of else date.today(),
        title=timetable.label,
    )
    _show_grid(app, grid, export)
    console.print(
        f"[dim]ID: {timetable.id}  |  Bearbeiten: {timetable.builder_path()}[/dim]"
    )


@cmd_timetable.command("teacher")
@click.argument("teacher_id")
@click.option("--year", default=None, help="Schuljahr (Standard: aus der Config).")
@click.option("--export", type=click.Path(path_type=Path), default=None,
              help="Zusätzlich als Excel-Datei speichern.")
@pass_app
def timetable_teacher(app: AppContext, teacher_id: str, year: Optional[str],
                      export: Optional[Path]):
    """Zeigt den Wochenplan einer Lehrkraft."""
    from models.schedule import TeacherViewSchedule
    from schedule.grid import build_grid
    from schedule.normalizer import normalize

    config = app.config
    with _report_errors():
        entries = app.service.get_teacher_timetable(
            teacher_id, year or config.academic_year
        )
    view = TeacherViewSchedule(teacher_id=teacher_id, entries=entries)
    name = next((e.teacher for e in entries if e.teacher), teacher_id)
    grid = build_grid(config.period_grid, normalize(view, config.period_grid),
                      title=f"Lehrkraft {name}")
    _show_grid(app, grid, export)


@cmd_timetable.command("room")
@click.argument("room_id")
@click.option("--year", default=None, help="Schuljahr (Standard: aus der Config).")
@click.option("--export", type=click.Path(path_type=Path), default=None,
              help="Zusätzlich als Excel-Datei speichern.")
@pass_app
def timetable_room(app: AppContext, room_id: str, year: Optional[str],
                   export: Optional[Path]):
    """Zeigt die Belegung eines Raums."""
    from models.schedule import RoomViewSchedule
    from schedule.grid import build_grid
    from schedule.normalizer import normalize

    config = app.config
    with _report_errors():
        entries = app.service.get_room_schedule(room_id, year or config.academic_year)
    room_name = next((e.room for e in entries if e.room), room_id)
    view = RoomViewSchedule(room_id=room_id, room_name=room_name, entries=entries)
    grid = build_grid(config.period_grid, normalize(view, config.period_grid),
                      title=f"Raum {room_name}")
    _show_grid(app, grid, export)


@cmd_timetable.command("delete")
@click.argument("timetable_id")
@click.option("--yes", "-y", is_flag=True, default=False, help="Ohne Rückfrage löschen.")
@pass_app
def timetable_delete(app: AppContext, timetable_id: str, yes: bool):
    """Löscht einen Stundenplan endgültig."""
    if not yes and not click.confirm(
        f"Stundenplan {timetable_id} wirklich löschen?", default=False
    ):
        return
    with _report_errors():
        app.service.delete_timetable(timetable_id)
    console.print(f"[green]✓[/green] Stundenplan {timetable_id} gelöscht.")


# ─── SUBSTITUTE ───────────────────────────────────────────────────────────────

@click.group("substitute")
def cmd_substitute():
    """Vertretungen auflisten, zuweisen und zurücknehmen."""


def _substitution_table(records, numbers: Optional[list[int]] = None) -> Table:
    """Nr. entspricht der Position in der vollständigen Liste (für 'substitute remove')."""
    numbers = numbers or list(range(1, len(records) + 1))
    table = Table(title="Aktive Vertretungen", box=box.ROUNDED)
    table.add_column("Nr.", justify="right")
    table.add_column("Datum")
    table.add_column("Tag")
    table.add_column("Klasse")
    table.add_column("Fach")
    table.add_column("Std.", justify="right")
    table.add_column("Lehrkraft")
    table.add_column("Vertretung", style="bold yellow")
    table.add_column("Grund", style="dim")
    for i, rec in zip(numbers, records):
        period = rec.period_number if rec.period_number is not None else rec.period_index + 1
        table.add_row(
            str(i),
            rec.date.strftime("%d.%m.%Y"),
            rec.weekday.value,
            rec.class_section,
            rec.subject,
            str(period),
            rec.original_teacher.name if rec.original_teacher else "—",
            rec.substitute_teacher.name,
            rec.reason or "",
        )
    return table


@cmd_substitute.command("list")
@click.option("--date", "on_date", type=click.DateTime(formats=["%Y-%m-%d"]),
              default=None, help="Nur Vertretungen an diesem Tag.")
@click.option("--timetable", "timetable_id", default=None,
              help="Nur Vertretungen dieses Stundenplans.")
@click.option("--by-substitute", is_flag=True, default=False,
              help="Zusätzlich Anzahl je vertretender Lehrkraft.")
@click.option("--export", type=click.Path(path_type=Path), default=None,
              help="Liste zusätzlich als Excel-Datei speichern.")
@pass_app
def substitute_list(app: AppContext, on_date, timetable_id: Optional[str],
                    by_substitute: bool, export: Optional[Path]):
    """Listet die aktiven Vertretungen, optional gefiltert."""
    from substitution.ledger import SubstitutionLedger

    ledger = SubstitutionLedger(app.service)
    with _report_errors():
        all_records = ledger.refresh()
    records = all_records
    if on_date is not None:
        day_records = ledger.on_date(on_date.date())
        records = [r for r in records if r in day_records]
    if timetable_id is not None:
        tt_records = ledger.for_timetable(timetable_id)
        records = [r for r in records if r in tt_records]

    if not records:
        console.print("[dim]Keine aktiven Vertretungen.[/dim]")
    else:
        numbers = [all_records.index(r) + 1 for r in records]
        console.print(_substitution_table(records, numbers))
    if by_substitute and records:
        summary = Table(title="Vertretungen je Lehrkraft", box=box.ROUNDED)
        summary.add_column("Lehrkraft", style="bold")
        summary.add_column("Anzahl", justify="right")
        for name, recs in sorted(ledger.by_substitute().items()):
            count = sum(1 for r in recs if r in records)
            if count:
                summary.add_row(name, str(count))
        console.print(summary)
    if export is not None:
        from export.excel_export import GridExcelExporter
        path = GridExcelExporter(app.config.school_name).export(
            [], export, substitutions=records
        )
        console.print(f"[green]✓[/green] Excel gespeichert: {path}")


@cmd_substitute.command("assign")
@click.option("--teacher", "teacher_id", default=None, help="ID der fehlenden Lehrkraft.")
@click.option("--date", "on_date", type=click.DateTime(formats=["%Y-%m-%d"]),
              default=None, help="Datum der Vertretung (YYYY-MM-DD).")
@click.option("--slot", type=int, default=None, help="Nr. der Stunde aus der Auswahlliste.")
@click.option("--substitute", "substitute_id", default=None, help="ID der Vertretung.")
@click.option("--reason", default=None, help="Grund (optional).")
@click.option("--yes", "-y", is_flag=True, default=False, help="Ohne Rückfrage speichern.")
@pass_app
def substitute_assign(app: AppContext, teacher_id, on_date, slot, substitute_id,
                      reason, yes: bool):
    """Weist eine Vertretung zu. Fehlende Angaben werden abgefragt."""
    from substitution.ledger import SubstitutionLedger
    from substitution.workflow import SubstituteWorkflow

    config = app.config
    service = app.service
    with _report_errors():
        ledger = SubstitutionLedger(service)
        workflow = SubstituteWorkflow(
            service,
            academic_year=config.academic_year,
            branch=config.api.branch,
            known_substitutions=ledger.refresh(),
        )

        # Schritt 1: Lehrkraft + Datum
        if teacher_id is None:
            _print_teachers(service.get_teachers())
            teacher_id = click.prompt("Fehlende Lehrkraft (ID)")
        if on_date is None:
            on_date = click.prompt(
                "Datum (YYYY-MM-DD)",
                type=click.DateTime(formats=["%Y-%m-%d"]),
                default=date.today().isoformat(),
            )
        slots = workflow.select_teacher_and_date(teacher_id, on_date.date())
        if not slots:
            console.print(f"[yellow]{workflow.guidance}[/yellow]")
            return

        # Schritt 2: Stunde
        table = Table(title="Stunden der fehlenden Lehrkraft", box=box.ROUNDED)
        table.add_column("Nr.", justify="right")
        table.add_column("Zeit")
        table.add_column("Fach")
        table.add_column("Klasse")
        table.add_column("Raum", style="dim")
        for i, entry in enumerate(slots, 1):
            table.add_row(str(i), f"{entry.start_time}-{entry.end_time}",
                          entry.subject, entry.class_section, entry.room)
        console.print(table)
        if slot is None:
            slot = click.prompt("Stunde (Nr.)", type=click.IntRange(1, len(slots)))
        available = workflow.select_slot(slot - 1)
        if not available:
            console.print(f"[yellow]{workflow.guidance}[/yellow]")
            return

        # Schritt 3: Vertretung
        if substitute_id is None:
            _print_teachers(available, title="Freie Lehrkräfte")
            substitute_id = click.prompt(
                "Vertretung (ID)",
                type=click.Choice([t.id for t in available]),
            )
            if reason is None:
                reason = click.prompt("Grund", default="", show_default=False)
        workflow.select_substitute(substitute_id, reason)

        chosen = workflow.selection.chosen_slot
        if not yes and not click.confirm(
            f"Vertretung für {chosen.label()} speichern?", default=True
        ):
            workflow.cancel()
            return
        record = workflow.commit()

    console.print(
        f"[green]✓[/green] {record.substitute_teacher.name} vertritt am "
        f"{record.date.strftime('%d.%m.%Y')} ({record.class_section}, {record.subject})."
    )


@cmd_substitute.command("remove")
@click.argument("index", type=int)
@click.option("--yes", "-y", is_flag=True, default=False, help="Ohne Rückfrage entfernen.")
@pass_app
def substitute_remove(app: AppContext, index: int, yes: bool):
    """Nimmt die Vertretung mit der Nr. aus 'substitute list' zurück."""
    from substitution.ledger import SubstitutionLedger

    ledger = SubstitutionLedger(app.service)
    with _report_errors():
        ledger.refresh()
        record = ledger.get(index)
        if record is None:
            console.print(f"[red]Keine Vertretung mit Nr. {index}.[/red]")
            sys.exit(1)
        if not yes and not click.confirm(
            f"Vertretung von {record.substitute_teacher.name} "
            f"({record.class_section}, {record.date.isoformat()}) entfernen?",
            default=False,
        ):
            return
        ledger.revert(record)
    console.print("[green]✓[/green] Vertretung entfernt.")


# ─── REFERENCE ────────────────────────────────────────────────────────────────

@click.group("reference")
def cmd_reference():
    """Stammdaten vom Server anzeigen."""


def _print_teachers(teachers, title: str = "Lehrkräfte") -> None:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Fächer", style="dim")
    for t in teachers:
        table.add_row(t.id, t.name, ", ".join(t.subjects))
    console.print(table)


@cmd_reference.command("teachers")
@pass_app
def reference_teachers(app: AppContext):
    """Listet alle Lehrkräfte."""
    with _report_errors():
        teachers = app.service.get_teachers()
    _print_teachers(teachers)


@cmd_reference.command("rooms")
@pass_app
def reference_rooms(app: AppContext):
    """Listet alle Räume."""
    with _report_errors():
        rooms = app.service.get_rooms()
    table = Table(title="Räume", box=box.ROUNDED)
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Typ")
    table.add_column("Plätze", justify="right")
    for r in rooms:
        table.add_row(r.id, r.name, r.room_type or "",
                      str(r.capacity) if r.capacity is not None else "")
    console.print(table)


@cmd_reference.command("classes")
@pass_app
def reference_classes(app: AppContext):
    """Listet alle Klassen mit ihren Sektionen."""
    with _report_errors():
        classes = app.service.get_classes()
    table = Table(title="Klassen", box=box.ROUNDED)
    table.add_column("Klasse", style="bold")
    table.add_column("Sektionen")
    for c in classes:
        table.add_row(c.name, ", ".join(c.sections))
    console.print(table)


@cmd_reference.command("years")
@pass_app
def reference_years(app: AppContext):
    """Zeigt die bekannten Schuljahre, ergänzt um das aktuelle des Servers."""
    config = app.config
    with _report_errors():
        current = app.service.get_current_academic_year()
    years = list(config.academic_years)
    if current and current not in years:
        years = sorted([*years, current])
    for y in years:
        marks = []
        if y == config.academic_year:
            marks.append("aktiv")
        if y == current:
            marks.append("Server")
        suffix = f"  [dim]({', '.join(marks)})[/dim]" if marks else ""
        console.print(f"  {y}{suffix}")


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--demo", is_flag=True, default=False,
              help="Demo-Server im Speicher statt echtem Server verwenden.")
@click.option("--verbose", "-v", is_flag=True, default=False,
              help="Ausführliche Log-Ausgabe.")
@click.pass_context
def cli(ctx: click.Context, demo: bool, verbose: bool):
    """Stundenplan-Konsole: Klassen-, Lehrer- und Raumpläne, Vertretungen.

    Starten Sie mit: python main.py config init
    """
    _setup_logging(verbose)
    app = ctx.ensure_object(AppContext)
    if demo:
        app.demo = True


def main():
    """Einstiegspunkt. Legt beim ersten Aufruf ohne Argumente die Config an."""
    from config.manager import ConfigManager
    mgr = ConfigManager()

    if len(sys.argv) == 1 and mgr.first_run_check():
        console.print(Panel(
            "[bold]Willkommen bei der Stundenplan-Konsole![/bold]\n\n"
            "Keine Konfiguration gefunden.\n"
            "Die Standard-Konfiguration wird jetzt angelegt...",
            border_style="cyan",
        ))
        sys.argv.extend(["config", "init"])

    cli()


# Befehle registrieren
cli.add_command(cmd_config)
cli.add_command(cmd_timetable)
cli.add_command(cmd_substitute)
cli.add_command(cmd_reference)


if __name__ == "__main__":
    main()
