"""Konfigurationsmanager: Laden, Speichern, Validieren und interaktives Bearbeiten.

Nutzt ruamel.yaml für YAML-Serialisierung mit Kommentaren.
"""

import json
import os
from datetime import date
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, FloatPrompt, Prompt
from rich.table import Table
from rich import box
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.schema import ApiConfig, ConsoleConfig, PeriodGridConfig

console = Console()
yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120

# Umgebungsvariablen überschreiben die Datei (z.B. Token nicht im Repo ablegen)
ENV_OVERRIDES = {
    "TIMETABLE_API_URL": "base_url",
    "TIMETABLE_API_TOKEN": "token",
    "TIMETABLE_BRANCH": "branch",
}


# ─── YAML-KOMMENTAR-AUFBAU ───

_YAML_HEADER = f"""\
# ============================================
# Stundenplan-Konsole — Konfiguration
# Version: 1.0
# Erstellt: {date.today().isoformat()}
# ============================================
"""

_SECTION_COMMENTS = {
    "academic_year": (
        "Schuljahr",
        "Aktives Schuljahr für alle Stundenplan-Abfragen.",
    ),
    "api": (
        "Server",
        "REST-Server der Schulverwaltung. Token besser per TIMETABLE_API_TOKEN setzen.",
    ),
    "period_grid": (
        "Zeitraster",
        "Stunden und Pausen in zeitlicher Reihenfolge (HH:MM, Ende exklusiv).",
    ),
}


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "console_config.yaml"

    def first_run_check(self) -> bool:
        """Gibt True zurück wenn noch keine Config existiert (Erstaufruf)."""
        return not self.DEFAULT_CONFIG.exists()

    # ─── Laden ───

    def load(self, path: Optional[Path] = None) -> ConsoleConfig:
        """Lade Config aus YAML. Validiert automatisch via Pydantic."""
        target = path or self.DEFAULT_CONFIG
        if not target.exists():
            raise FileNotFoundError(
                f"Konfigurationsdatei nicht gefunden: {target}\n"
                f"Führen Sie 'python main.py config init' aus."
            )
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        try:
            config = ConsoleConfig.model_validate(json.loads(json.dumps(raw)))
        except Exception as e:
            raise ValueError(
                f"Konfigurationsdatei ungültig: {target}\n"
                f"Pydantic-Fehler: {e}"
            ) from e
        return self.apply_env_overrides(config)

    def apply_env_overrides(self, config: ConsoleConfig) -> ConsoleConfig:
        """Übernimmt gesetzte TIMETABLE_*-Umgebungsvariablen in die API-Config."""
        updates = {
            field: os.environ[var]
            for var, field in ENV_OVERRIDES.items()
            if os.environ.get(var)
        }
        if not updates:
            return config
        api = ApiConfig.model_validate({**config.api.model_dump(), **updates})
        return config.model_copy(update={"api": api})

    # ─── Speichern ───

    def save(self, config: ConsoleConfig, path: Optional[Path] = None) -> None:
        """Speichere Config als YAML mit Kommentaren."""
        target = path or self.DEFAULT_CONFIG
        target.parent.mkdir(parents=True, exist_ok=True)

        data = self._build_commented_yaml(config)

        with open(target, "w", encoding="utf-8") as f:
            f.write(_YAML_HEADER + "\n")
            yaml.dump(data, f)

        console.print(f"[green]✓[/green] Konfiguration gespeichert: {target}")

    def _build_commented_yaml(self, config: ConsoleConfig) -> CommentedMap:
        """Baut die YAML-Struktur mit Kommentaren auf."""
        raw = json.loads(config.model_dump_json())
        cm = CommentedMap(raw)

        for field, (label, comment) in _SECTION_COMMENTS.items():
            cm.yaml_set_comment_before_after_key(
                field,
                before=f"\n─── {label} ───" + (f"\n{comment}" if comment else ""),
            )

        api_map = CommentedMap(cm["api"])
        api_map.yaml_add_eol_comment("Sekunden", "timeout_seconds")
        cm["api"] = api_map

        return cm

    # ─── Anzeige ───

    def show(self, config: ConsoleConfig) -> None:
        """Zeigt die Konfiguration als Rich-Panel und Zeitraster-Tabelle."""
        api = config.api
        console.print(Panel(
            f"[bold]{config.school_name}[/bold]  |  "
            f"Schuljahr {config.academic_year}\n"
            f"Server: {api.base_url}  |  Filiale: {api.branch or '—'}  |  "
            f"Token: {'gesetzt' if api.token else 'fehlt'}",
            title="Konsolen-Konfiguration",
            border_style="cyan",
        ))
        show_period_grid_table(config.period_grid)

    # ─── Interaktives Bearbeiten ───

    def edit_interactive(self, config: ConsoleConfig) -> ConsoleConfig:
        """Interaktives Bearbeitungsmenü für die Konfiguration."""
        while True:
            console.print()
            console.print(Panel(
                "[bold]Konfiguration bearbeiten[/bold]",
                border_style="cyan",
            ))
            console.print("  [bold]1.[/bold] Server (URL, Timeout, Token, Filiale)")
            console.print("  [bold]2.[/bold] Schuljahr")
            console.print("  [bold]3.[/bold] Zeitraster anzeigen")
            console.print("  [bold]0.[/bold] Speichern & Zurück")

            choice = Prompt.ask("\nAuswahl", default="0")

            if choice == "1":
                config = config.model_copy(
                    update={"api": self._edit_api(config.api)}
                )
            elif choice == "2":
                config = self._edit_academic_year(config)
            elif choice == "3":
                show_period_grid_table(config.period_grid)
            elif choice == "0":
                self.save(config)
                break
            else:
                console.print("[yellow]Ungültige Auswahl.[/yellow]")

        return config

    def _edit_api(self, api: ApiConfig) -> ApiConfig:
        """Server-Zugang interaktiv anpassen."""
        base_url = Prompt.ask("Basis-URL", default=api.base_url)
        timeout = FloatPrompt.ask("Timeout (Sekunden)", default=api.timeout_seconds)
        branch = Prompt.ask("Filiale (leer = keine)", default=api.branch or "")
        token = api.token
        if Confirm.ask("Token ändern?", default=False):
            token = Prompt.ask("Token", password=True) or None
        return ApiConfig(
            base_url=base_url,
            timeout_seconds=timeout,
            token=token,
            branch=branch or None,
        )

    def _edit_academic_year(self, config: ConsoleConfig) -> ConsoleConfig:
        """Aktives Schuljahr aus der Liste wählen oder neu anlegen."""
        year = Prompt.ask(
            "Schuljahr",
            choices=None,
            default=config.academic_year,
        )
        years = config.academic_years
        if year not in years:
            years = sorted([*years, year])
        return config.model_copy(
            update={"academic_year": year, "academic_years": years}
        )


def show_period_grid_table(grid: PeriodGridConfig) -> None:
    """Zeigt das Zeitraster als rich-Tabelle an."""
    table = Table(title="Zeitraster", box=box.ROUNDED)
    table.add_column("Name", style="bold")
    table.add_column("Beginn")
    table.add_column("Ende")
    table.add_column("Info")
    for p in grid.periods:
        info = "[dim]Pause[/dim]" if p.is_break else ""
        table.add_row(p.name, p.start_time, p.end_time, info)
    console.print(table)
    console.print(
        f"[dim]Tage: {', '.join(d.value for d in grid.weekdays)}[/dim]"
    )
