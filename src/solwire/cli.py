"""
Solwire CLI

Command-line interface for a Solana JSON-RPC node.

Commands:
  keygen     - Create a new keypair and store it in ~/.solwire/.env
  whoami     - Show the current wallet address
  balance    - Show an account balance in lamports
  account    - Show raw account info
  blockhash  - Show the latest blockhash
  airdrop    - Request an airdrop (devnet / testnet)
  rent       - Minimum balance for rent exemption
  tx         - Fetch a transaction by signature
  transfer   - Send lamports to another account
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Optional

import click

from .config import CLUSTER_URLS, DEFAULT_RPC_URL, SendOptions
from .connection import Connection
from .errors import SolwireError
from .keys import Keypair, PublicKey, generate_keypair, load_keypair, save_secret_key
from .programs.system import transfer as transfer_instruction
from .transaction import Transaction


# ============ Constants ============

VERSION = "0.3.0"

COMMITMENTS = click.Choice(["processed", "confirmed", "finalized"])


# ============ Helpers ============


def _connection(ctx: click.Context) -> Connection:
    return ctx.obj["connection_factory"](ctx.obj["rpc_url"])


def _fail(exc: Exception) -> None:
    click.secho(f"ERROR: {exc}", fg="red")
    sys.exit(getattr(exc, "exit_code", 1))


def _echo_json(value: Any) -> None:
    click.echo(json.dumps(value, indent=2, sort_keys=True))


def _load_signer(keypair_file: Optional[str]) -> Keypair:
    if keypair_file:
        return Keypair.from_json_file(keypair_file)
    return load_keypair()


# ============ Main CLI Group ============


@click.group()
@click.version_option(version=VERSION, prog_name="solwire")
@click.option(
    "--rpc-url",
    envvar="SOLWIRE_RPC_URL",
    default=DEFAULT_RPC_URL,
    help=f"RPC URL or cluster name ({', '.join(CLUSTER_URLS)})",
)
@click.option("--verbose", "-v", is_flag=True, help="Log RPC traffic")
@click.pass_context
def cli(ctx: click.Context, rpc_url: str, verbose: bool) -> None:
    """Solwire - Solana JSON-RPC client."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj.setdefault("connection_factory", Connection)
    ctx.obj["rpc_url"] = rpc_url


# ============ Identity ============


@cli.command()
@click.option("--force", is_flag=True, help="Overwrite an existing SECRET_KEY")
def keygen(force: bool) -> None:
    """Create a new keypair."""
    if not force:
        try:
            existing = load_keypair()
        except SolwireError:
            existing = None
        if existing is not None:
            click.echo(f"Keypair already exists: {existing.public_key}")
            click.echo("Use --force to replace it.")
            sys.exit(1)

    secret_key, address = generate_keypair()
    path = save_secret_key(secret_key)
    click.secho("Keypair created.", fg="green")
    click.echo(f"  Address: {address}")
    click.echo(f"  Stored:  {path}")


@cli.command()
def whoami() -> None:
    """Show current wallet identity."""
    try:
        keypair = load_keypair()
    except SolwireError:
        click.echo("No wallet found.")
        click.echo("Run 'solwire keygen' to create one.")
        sys.exit(1)
    click.echo(f"Address: {keypair.public_key}")


# ============ Queries ============


@cli.command()
@click.argument("address", required=False)
@click.pass_context
def balance(ctx: click.Context, address: Optional[str]) -> None:
    """Show balance in lamports (defaults to your wallet)."""
    try:
        pubkey = PublicKey(address) if address else load_keypair().public_key
        with _connection(ctx) as conn:
            lamports = conn.get_balance(pubkey)
    except SolwireError as exc:
        _fail(exc)
        return
    click.echo(f"{pubkey}: {lamports} lamports")


@cli.command()
@click.argument("address")
@click.pass_context
def account(ctx: click.Context, address: str) -> None:
    """Show raw account info."""
    try:
        with _connection(ctx) as conn:
            info = conn.get_account_info(address)
    except SolwireError as exc:
        _fail(exc)
        return
    _echo_json(info)


@cli.command()
@click.option("--commitment", type=COMMITMENTS, default=None)
@click.pass_context
def blockhash(ctx: click.Context, commitment: Optional[str]) -> None:
    """Show the latest blockhash."""
    try:
        with _connection(ctx) as conn:
            value = conn.get_latest_blockhash(commitment)
    except SolwireError as exc:
        _fail(exc)
        return
    click.echo(f"Blockhash:              {value['blockhash']}")
    click.echo(f"Last valid block height: {value['lastValidBlockHeight']}")


@cli.command()
@click.option("--space", default=1024, type=int, show_default=True, help="Account data size")
@click.pass_context
def rent(ctx: click.Context, space: int) -> None:
    """Minimum balance for rent exemption."""
    try:
        with _connection(ctx) as conn:
            lamports = conn.get_minimum_balance_for_rent_exemption(space)
    except SolwireError as exc:
        _fail(exc)
        return
    click.echo(f"{space} bytes: {lamports} lamports")


@cli.command()
@click.argument("signature")
@click.pass_context
def tx(ctx: click.Context, signature: str) -> None:
    """Fetch a transaction by signature."""
    try:
        with _connection(ctx) as conn:
            result = conn.get_transaction(signature)
    except SolwireError as exc:
        _fail(exc)
        return
    if result is None:
        click.echo("Transaction not found.")
        sys.exit(1)
    _echo_json(result)


# ============ Writes ============


@cli.command()
@click.argument("address", required=False)
@click.option("--lamports", default=1_000_000_000, type=int, show_default=True)
@click.pass_context
def airdrop(ctx: click.Context, address: Optional[str], lamports: int) -> None:
    """Request an airdrop (devnet / testnet only)."""
    try:
        pubkey = PublicKey(address) if address else load_keypair().public_key
        with _connection(ctx) as conn:
            signature = conn.request_airdrop([str(pubkey), lamports])
    except SolwireError as exc:
        _fail(exc)
        return
    click.secho("Airdrop requested.", fg="green")
    click.echo(f"  Signature: {signature}")


@cli.command()
@click.argument("recipient")
@click.argument("lamports", type=int)
@click.option("--keypair", "keypair_file", default=None, help="Solana CLI keypair JSON file")
@click.option("--skip-preflight", is_flag=True)
@click.option("--preflight-commitment", type=COMMITMENTS, default=None)
@click.pass_context
def transfer(
    ctx: click.Context,
    recipient: str,
    lamports: int,
    keypair_file: Optional[str],
    skip_preflight: bool,
    preflight_commitment: Optional[str],
) -> None:
    """Send lamports from your wallet to RECIPIENT."""
    try:
        signer = _load_signer(keypair_file)
        instruction = transfer_instruction(signer.public_key, recipient, lamports)
        options = SendOptions(
            skip_preflight=skip_preflight or None,
            preflight_commitment=preflight_commitment,
        )
        with _connection(ctx) as conn:
            result = conn.send_transaction(Transaction().add(instruction), [signer], options)
    except (SolwireError, FileNotFoundError) as exc:
        _fail(exc)
        return

    if isinstance(result, str):
        click.secho("Transaction submitted.", fg="green")
        click.echo(f"  Signature: {result}")
    else:
        _echo_json(result)


# ============ Entry Points ============


def main() -> None:
    """Solwire CLI entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
