"""
Command-line interface for the SMART Health Card decoder.

Usage:
    shc-decode smart-health-card.png
    shc-decode --text "shc:/56762909..."
    shc-decode card.png --json-output
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from shc_decoder.errors import SHCError
from shc_decoder.jwks import JWKSFetcher
from shc_decoder.pipeline import DecodedHealthCard, HealthCardDecoder


DEFAULT_IMAGE = "./smart-health-card.png"

console = Console()


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def format_result(card: DecodedHealthCard) -> None:
    """Print the decoding stages and the extracted record."""
    token = card.token

    stages = Table(show_header=False, box=None, padding=(0, 2))
    stages.add_column("Field", style="dim")
    stages.add_column("Value", overflow="fold")

    stages.add_row("QR", card.scanned_text)
    stages.add_row("JWS", str(token))
    stages.add_row("Header", token.header)
    stages.add_row("Payload", token.payload)
    stages.add_row("Signature", token.signature)
    stages.add_row("Card", json.dumps(card.claims.raw, ensure_ascii=False))
    stages.add_row("Issuer", card.issuer)
    stages.add_row("Keys", ", ".join(r.kid for r in card.key_records))
    # a returned card always verified and matched; failures raise before this
    stages.add_row("Verified", "[bold green]true[/]")

    console.print(Panel(stages, title="Decoding", border_style="green"))

    patient = card.record.patient
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="dim")
    table.add_column("Value")
    table.add_row("Name", patient.name)
    table.add_row("Birth date", patient.birth_date or "-")

    for dose, immunization in enumerate(card.record.immunizations, start=1):
        table.add_row(f"[bold]Dose {dose}[/]", "")
        table.add_row("  Date", immunization.occurrence_date_time or "-")
        table.add_row(
            "  Vaccine",
            f"{immunization.vaccine_code} ({immunization.vaccine_system})",
        )
        table.add_row("  Lot number", immunization.lot_number or "-")
        if immunization.performer:
            table.add_row("  Performer", immunization.performer)

    if not card.record.immunizations:
        table.add_row("Doses", "[dim]none[/]")

    console.print(Panel(table, title="Vaccination Record", border_style="green"))


def result_to_dict(card: DecodedHealthCard) -> dict[str, Any]:
    record = card.record
    return {
        "status": card.verification.status.value,
        "verified": card.verification.is_verified,
        "issuer": card.issuer,
        "kid": [r.kid for r in card.key_records],
        "patient": {
            "name": record.patient.name,
            "family": record.patient.family,
            "given": record.patient.given,
            "birth_date": record.patient.birth_date,
        },
        "immunizations": [
            {
                "occurrence_date_time": i.occurrence_date_time,
                "vaccine_code": i.vaccine_code,
                "vaccine_system": i.vaccine_system,
                "lot_number": i.lot_number,
                "status": i.status,
                "performer": i.performer,
            }
            for i in record.immunizations
        ],
    }


@click.command()
@click.argument("image", required=False, default=DEFAULT_IMAGE)
@click.option(
    "--text",
    "qr_text",
    help="Decode already scanned QR text (shc:/...) instead of an image",
)
@click.option(
    "--no-ssl-verify",
    is_flag=True,
    help="Disable SSL certificate verification",
)
@click.option(
    "--json-output",
    is_flag=True,
    help="Output result as JSON",
)
@click.option(
    "--timeout",
    type=float,
    default=30.0,
    help="HTTP request timeout in seconds for the issuer key fetch",
)
@click.option("-v", "--verbose", is_flag=True, help="Log each pipeline stage")
@click.version_option(package_name="shc-decoder")
def main(
    image: str,
    qr_text: str | None,
    no_ssl_verify: bool,
    json_output: bool,
    timeout: float,
    verbose: bool,
) -> None:
    """Decode and verify a SMART Health Card QR code.

    IMAGE is the path to the QR image (default ./smart-health-card.png).

    Examples:

        shc-decode smart-health-card.png

        shc-decode --text "shc:/56762909..."
    """
    configure_logging(verbose)

    decoder = HealthCardDecoder(
        key_fetcher=JWKSFetcher(timeout=timeout, verify_ssl=not no_ssl_verify),
    )

    try:
        if qr_text is not None:
            card = decoder.decode_text(qr_text)
        else:
            card = decoder.decode_image(image)

    except SHCError as e:
        if json_output:
            console.print_json(data={
                "status": "failed",
                "error": {"kind": e.kind, "message": e.message, "detail": e.detail},
            })
        else:
            console.print(f"[red]Error:[/] {e.kind}: {e}")
        sys.exit(e.exit_code)

    except Exception as e:
        if json_output:
            console.print_json(data={"status": "failed", "error": {"kind": "Unexpected", "message": str(e)}})
        else:
            console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    if json_output:
        console.print_json(data=result_to_dict(card))
    else:
        format_result(card)

    sys.exit(0)


if __name__ == "__main__":
    main()
