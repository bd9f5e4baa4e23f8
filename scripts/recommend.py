#!/usr/bin/env python3
"""
Cellar recommendation script.

Loads a cellar CSV, classifies every bottle's readiness, reports vintage
inversions and prints a recommendation shortlist for the given context.
"""

import argparse
import sys
from pathlib import Path
from typing import List

import pandas as pd
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cellarwise.cellar_engine import CellarEngine
from cellarwise.error_handling import DataValidationError
from cellarwise.schema import Bottle, RecommendationConstraints, RecommendationContext, Wine

DEFAULT_CELLAR = Path(__file__).parent.parent / "data" / "sample_cellar.csv"
REQUIRED_COLUMNS = ['bottle_id', 'wine_name', 'vintage', 'wine_type']

LABEL_STYLES = {
    'HOLD': 'bold yellow',
    'READY': 'bold green',
    'PEAK_SOON': 'bold magenta',
}


def _optional(value):
    return None if pd.isna(value) else value


def load_cellar(path: Path) -> List[Bottle]:
    """Read a cellar CSV into Bottle records."""
    df = pd.read_csv(path)

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise DataValidationError(f"Cellar file missing columns: {missing}")

    bottles = []
    for _, row in df.iterrows():
        grapes = _optional(row.get('grapes'))
        vintage = _optional(row.get('vintage'))
        wine = Wine(
            id=str(row['bottle_id']),
            producer=_optional(row.get('producer')),
            name=str(row['wine_name']),
            vintage=int(vintage) if vintage is not None else None,
            wine_type=_optional(row.get('wine_type')),
            region=_optional(row.get('region')),
            country=_optional(row.get('country')),
            grapes=[g.strip() for g in str(grapes).split(';') if g.strip()] if grapes else [],
            rating=_optional(row.get('rating')),
        )
        quantity = _optional(row.get('quantity'))
        bottles.append(Bottle(
            id=str(row['bottle_id']),
            wine=wine,
            quantity=int(quantity) if quantity is not None else 1,
            price=_optional(row.get('price')),
        ))

    return bottles


def create_readiness_table(bottles: List[Bottle]) -> Table:
    table = Table(
        title="🍷 Cellar Readiness",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan",
        title_style="bold white"
    )

    table.add_column("Wine", style="white")
    table.add_column("Vintage", justify="center")
    table.add_column("Type", style="dim white")
    table.add_column("Label", justify="center")
    table.add_column("Confidence", justify="center")
    table.add_column("Window", justify="center")

    for bottle in bottles:
        verdict = bottle.verdict
        window = verdict.drink_window
        label = verdict.label.value
        table.add_row(
            f"{bottle.wine.producer or ''} {bottle.wine.name}".strip(),
            str(bottle.wine.vintage or 'NV'),
            bottle.wine.wine_type or '?',
            f"[{LABEL_STYLES[label]}]{label}[/{LABEL_STYLES[label]}]",
            verdict.confidence.value,
            f"{window[0]}-{window[1]}" if window else "-",
        )

    return table


def main():
    parser = argparse.ArgumentParser(
        description="Cellarwise recommendations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/recommend.py --meal steak
  python scripts/recommend.py --meal seafood --occasion "date night" --ready-only
  python scripts/recommend.py --cellar my_cellar.csv --max-price 40 -k 5
        """
    )
    parser.add_argument('--cellar', '-c', type=Path, default=DEFAULT_CELLAR, help='Cellar CSV file')
    parser.add_argument('--meal', '-m', type=str, help='Meal type (e.g. steak, pizza, seafood)')
    parser.add_argument('--occasion', '-o', type=str, help='Occasion (e.g. celebration, date night)')
    parser.add_argument('--vibe', '-v', type=str, help='Vibe (e.g. casual, special surprise)')
    parser.add_argument('--max-price', type=float, help='Maximum bottle price')
    parser.add_argument('--ready-only', action='store_true', help='Only READY / PEAK_SOON bottles')
    parser.add_argument('-k', type=int, default=3, help='Number of recommendations')
    parser.add_argument('--user', type=str, default='local', help='Rotation scope (user id)')

    args = parser.parse_args()
    console = Console()

    try:
        bottles = load_cellar(args.cellar)
    except (OSError, DataValidationError) as e:
        console.print(f"[bold red]Error loading cellar:[/bold red] {e}")
        sys.exit(1)

    engine = CellarEngine()

    with console.status("[bold cyan]Analyzing cellar...", spinner="dots"):
        analysis = engine.analyze_cellar(bottles)

    console.print()
    console.print(create_readiness_table(analysis.bottles))
    console.print()

    for issue in analysis.validation.issues:
        console.print(f"[yellow]⚠ {issue.identity}:[/yellow] {issue.issue}. {issue.suggestion}.")
    if analysis.validation.issues:
        console.print()

    context = RecommendationContext(
        meal_type=args.meal,
        occasion=args.occasion,
        vibe=args.vibe,
        constraints=RecommendationConstraints(max_price=args.max_price, prefer_ready=args.ready_only),
    )
    result = engine.recommend_for(args.user, context, analysis.bottles, k=args.k)

    if not result.recommendations:
        console.print(f"[bold red]{result.message}[/bold red]")
        return

    for rec in result.recommendations:
        wine = rec.bottle.wine
        console.print(Panel(
            f"{rec.explanation}\n\n[dim]{rec.serving_instructions}[/dim]",
            title=f"#{rec.rank}  {wine.producer or ''} {wine.name} {wine.vintage or 'NV'}".strip(),
            subtitle=f"score {rec.score:.1f}",
            border_style="green" if rec.rank == 1 else "cyan",
        ))


if __name__ == "__main__":
    main()
