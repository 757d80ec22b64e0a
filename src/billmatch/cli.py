"""CLI interface for billmatch."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from billmatch import __version__
from billmatch.categorize import CategorySuggester
from billmatch.config import Config, load_config
from billmatch.errors import BillmatchError
from billmatch.importers.bank_csv import BankCsvImporter
from billmatch.importers.base import Transaction, TransactionImporter
from billmatch.importers.json_feed import JsonFeedImporter, load_bills
from billmatch.matching.aliases import MerchantAliasTable, generate_aliases
from billmatch.matching.context import load_alias_table, load_context
from billmatch.matching.engine import TransactionMatcher
from billmatch.matching.patterns import PaymentPatternExtractor
from billmatch.subscriptions import SubscriptionDetector


def _get_importers() -> list[TransactionImporter]:
    return [JsonFeedImporter(), BankCsvImporter()]


def _load_transactions(filepath: str) -> list[Transaction]:
    """Pick the first importer that identifies the file and extract from it."""
    for importer in _get_importers():
        if importer.identify(filepath):
            return importer.extract(filepath)
    click.echo(f"No importer recognizes {filepath}", err=True)
    sys.exit(1)


def _data_file(config: Config, override: str | None, configured: str | None) -> Path | None:
    if override:
        return Path(override)
    return config.resolve_data_file(configured)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", default=None, help="Path to config.toml")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """billmatch - Match bills to bank transactions and spot subscriptions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(config_path)
    except BillmatchError as e:
        raise click.ClickException(str(e)) from e


@main.command()
@click.argument("transactions", type=click.Path(exists=True, dir_okay=False))
@click.argument("bills", type=click.Path(exists=True, dir_okay=False))
@click.option("--rules", "rules_path", default=None, help="Payment rules JSON file")
@click.option("--aliases", "aliases_path", default=None, help="Merchant alias JSON file")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def match(
    ctx: click.Context,
    transactions: str,
    bills: str,
    rules_path: str | None,
    aliases_path: str | None,
    as_json: bool,
) -> None:
    """Link each bill in BILLS to a transaction in TRANSACTIONS."""
    config: Config = ctx.obj["config"]
    rules_file = _data_file(config, rules_path, config.general.rules_file)
    aliases_file = _data_file(config, aliases_path, config.general.aliases_file)

    try:
        pool = _load_transactions(transactions)
        bill_list = load_bills(bills)
        matcher = TransactionMatcher(
            loader=lambda: load_context(rules_file, aliases_file),
            config=config.matching,
        )
        output = matcher.match_bills(bill_list, pool)
    except (BillmatchError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        data = {
            "matched": [
                {"billId": m.bill.id, "billName": m.bill.name, **m.result.to_dict()}
                for m in output.matched
            ],
            "unmatched": [{"billId": b.id, "billName": b.name} for b in output.unmatched],
        }
        click.echo(json.dumps(data, indent=2))
        return

    for m in output.matched:
        tx = m.result.transaction
        click.echo(
            f"  {m.bill.name:<30} -> {tx.display_name} {tx.amount} "
            f"({m.result.strategy.value}, {m.result.confidence:.2f})"
        )
    for bill in output.unmatched:
        click.echo(f"  {bill.name:<30} -> no match")
    total = len(output.matched) + len(output.unmatched)
    click.echo(f"\nMatched {len(output.matched)} of {total} bills")


@main.command()
@click.argument("transactions", type=click.Path(exists=True, dir_okay=False))
@click.option("--existing", "-e", multiple=True, help="Name of an already tracked subscription")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_context
def detect(
    ctx: click.Context, transactions: str, existing: tuple[str, ...], as_json: bool
) -> None:
    """Find recurring subscriptions in TRANSACTIONS."""
    config: Config = ctx.obj["config"]
    try:
        history = _load_transactions(transactions)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    detector = SubscriptionDetector(
        config=config.subscriptions,
        categorizer=CategorySuggester(config.get_categorize_rules()),
    )
    candidates = detector.detect(history, existing)

    if as_json:
        click.echo(json.dumps([c.to_dict() for c in candidates], indent=2))
        return

    if not candidates:
        click.echo("No recurring subscriptions detected.")
        return
    for c in candidates:
        click.echo(
            f"  {c.merchant_name:<30} {c.amount:>10} {c.billing_cycle.value:<10} "
            f"{c.confidence:>3}%  next {c.next_renewal.isoformat()}  [{c.category}]"
        )


@main.command()
@click.argument("text")
def extract(text: str) -> None:
    """Show the payment details parsed from a transaction TEXT."""
    info = PaymentPatternExtractor().extract(text)
    if info is None:
        click.echo("No payment pattern recognized.")
        return
    click.echo(f"Type:      {info.payment_type}")
    click.echo(f"Recipient: {info.recipient}")
    click.echo(f"Keywords:  {', '.join(info.keywords)}")
    click.echo(f"Pattern:   {info.pattern_used} ({info.confidence:.2f})")


@main.command()
@click.argument("name")
@click.option("--aliases", "aliases_path", default=None, help="Merchant alias JSON file")
@click.pass_context
def aliases(ctx: click.Context, name: str, aliases_path: str | None) -> None:
    """Show generated and known aliases for a merchant NAME."""
    config: Config = ctx.obj["config"]
    aliases_file = _data_file(config, aliases_path, config.general.aliases_file)
    try:
        table = load_alias_table(aliases_file) if aliases_file else MerchantAliasTable.default()
    except BillmatchError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Generated: {', '.join(generate_aliases(name)) or '(none)'}")
    entry = table.lookup(name)
    if entry is None:
        click.echo("Known:     (no alias entry)")
        return
    click.echo(f"Known:     {entry.canonical_name} [{entry.category or 'uncategorized'}]")
    for alias in entry.aliases:
        click.echo(f"  - {alias}")
