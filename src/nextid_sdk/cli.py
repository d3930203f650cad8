"""CLI entry point for nextid_sdk."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable
from typing import TypeVar

import click

from nextid_sdk import __version__
from nextid_sdk.config import DEFAULT_CONFIG_PATH, load_config
from nextid_sdk.crypto.encoding import base64_decode
from nextid_sdk.crypto.keypair import Secp256k1KeyPair
from nextid_sdk.errors import NextIDError
from nextid_sdk.interfaces.procedure import SubmissionProcedure
from nextid_sdk.kv_service import KVServiceClient
from nextid_sdk.models.config import ClientConfig
from nextid_sdk.models.identity import Action, Platform
from nextid_sdk.models.procedure import Signature
from nextid_sdk.proof_service import ProofServiceClient

T = TypeVar("T")

RULE = "-=" * 40
PLATFORMS = [p.value for p in Platform]


def _run(coro: Awaitable[T]) -> T:
    """Run a coroutine; turn SDK errors into a clean exit status 1."""
    try:
        return asyncio.run(coro)  # type: ignore[arg-type]
    except NextIDError as exc:
        click.echo(f"Error ({type(exc).__name__}): {exc}", err=True)
        sys.exit(1)


def _config(ctx: click.Context) -> ClientConfig:
    try:
        cfg = load_config(ctx.obj["config_path"] or DEFAULT_CONFIG_PATH)
    except ValueError as exc:
        click.echo(f"Error: invalid configuration: {exc}", err=True)
        sys.exit(1)
    if not ctx.obj.get("verbose"):
        logging.getLogger("nextid_sdk").setLevel(cfg.log_level.upper())
    return cfg


def _avatar(cfg: ClientConfig, secret: str | None, avatar: str | None) -> Secp256k1KeyPair:
    """Signing key pair from --secret / NEXTID_SECRET, else a public-only --avatar."""
    try:
        if secret or cfg.secret_key:
            return Secp256k1KeyPair.from_sk_hex(secret or cfg.secret_key)
        if avatar:
            return Secp256k1KeyPair.from_pk_hex(avatar)
    except NextIDError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo("Seems like you don't have an avatar yet. Let me generate one for you:")
    pair = Secp256k1KeyPair.generate()
    click.echo(f"Secret key: {pair.sk_hex()}")
    return pair


def _prompt_signature(label: str) -> bytes:
    value = click.prompt(f"Paste the base64 {label} signature")
    try:
        return base64_decode(value)
    except NextIDError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _sign_or_prompt(procedure: SubmissionProcedure, pair: Secp256k1KeyPair) -> None:
    """Sign locally when the secret is at hand, else take an out-of-band signature."""
    if pair.has_sk():
        procedure.sign(pair)
        return
    click.echo("Ask the user to sign this with their avatar secret key "
               "using web3.eth.personal.sign():\n")
    click.echo(procedure.sign_payload)
    click.echo("")
    procedure.attach_signature(_prompt_signature("avatar"))


@click.group()
@click.option(
    "-c", "--config", "config_path", default=None,
    help=f"Path to config TOML file (default: {DEFAULT_CONFIG_PATH})",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.version_option(__version__)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """nextid - ProofService and KVService client."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the resolved configuration."""
    cfg = _config(ctx)
    click.echo(f"Environment:  {cfg.environment.value}")
    for label, resolve in (("ProofService", cfg.proof_endpoint), ("KVService", cfg.kv_endpoint)):
        try:
            url = resolve().base_url
        except ValueError:
            url = "(not set)"
        click.echo(f"{label + ':':13s} {url}")
    click.echo(f"Timeout:      {cfg.timeout}s")
    click.echo(f"Payload TTL:  {cfg.payload_ttl}s")
    click.echo(f"Secret:       {'***configured***' if cfg.secret_key else '(not set)'}")


# ── Keys ───────────────────────────────────────────────


@cli.command()
def keygen() -> None:
    """Generate a new avatar key pair."""
    pair = Secp256k1KeyPair.generate()
    click.echo(f"Secret key:  {pair.sk_hex()}")
    click.echo(f"Public key:  {pair.pk_hex()}")


@cli.command()
@click.argument("message")
@click.option("--secret", default=None, help="Avatar secret key hex (default: NEXTID_SECRET)")
@click.pass_context
def sign(ctx: click.Context, message: str, secret: str | None) -> None:
    """personal_sign MESSAGE and print the base64 signature."""
    cfg = _config(ctx)
    if not (secret or cfg.secret_key):
        click.echo("Error: No secret key configured.", err=True)
        click.echo("Pass --secret or set NEXTID_SECRET.", err=True)
        sys.exit(1)
    try:
        pair = Secp256k1KeyPair.from_sk_hex(secret or cfg.secret_key)
        signature = pair.personal_sign(message)
    except NextIDError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(Signature(signature).base64())


# ── ProofService ───────────────────────────────────────


@cli.group()
def proof():
    """ProofService lookups and ProofChain modifications."""
    pass


@proof.command("find")
@click.option("--platform", required=True, type=click.Choice(PLATFORMS))
@click.option("--identity", required=True, help="Identity on the platform (e.g. twitter handle)")
@click.option("-n", "--limit", type=int, default=None, help="Stop after this many avatars")
@click.pass_context
def proof_find(ctx: click.Context, platform: str, identity: str, limit: int | None) -> None:
    """List avatars bound to a platform identity."""
    cfg = _config(ctx)
    client = ProofServiceClient.from_config(cfg)
    avatars = _run(client.find_by(platform, identity, limit))

    if not avatars:
        click.echo("No avatars found.")
        return
    for a in avatars:
        click.echo(f"Avatar 0x{a.avatar.hex()} (arweave={a.last_arweave_id or '-'})")
        for p in a.proofs:
            state = "valid" if p.is_valid else f"invalid: {p.invalid_reason}"
            click.echo(f"  [{p.platform.value:9s}] {p.identity} ({state})")


@proof.command("bind")
@click.option("--platform", default="twitter", type=click.Choice(PLATFORMS))
@click.option("--identity", default=None, help="Identity to bind (prompted if omitted)")
@click.option("--action", default="create", type=click.Choice([a.value for a in Action]))
@click.option("--secret", default=None, help="Avatar secret key hex")
@click.option("--avatar", default=None, help="Avatar public key hex (sign elsewhere)")
@click.pass_context
def proof_bind(
    ctx: click.Context,
    platform: str,
    identity: str | None,
    action: str,
    secret: str | None,
    avatar: str | None,
) -> None:
    """Interactively bind (or unbind) an identity to an avatar."""
    cfg = _config(ctx)
    if identity is None:
        identity = click.prompt(f"Which {platform} identity do you want to bind?").strip()
    pair = _avatar(cfg, secret, avatar)
    click.echo(f"Public key: {pair.pk_hex()}")

    client = ProofServiceClient.from_config(cfg)
    procedure = client.procedure(action, pair, platform, identity)

    async def _bind():
        await procedure.begin()

        _sign_or_prompt(procedure, pair)

        wallet_signature = None
        if procedure.platform is Platform.ETHEREUM:
            click.echo("Ask the wallet owner to personal_sign the same payload.")
            wallet_signature = _prompt_signature("wallet")
            proof_location = ""
        else:
            click.echo("Let the user post the following content publicly:\n")
            click.echo(RULE)
            click.echo(procedure.render_post_content())
            click.echo(RULE + "\n")
            proof_location = click.prompt(
                "Done? Tell me where it was posted (e.g. the tweet status ID)"
            ).strip()

        result = await procedure.submit(proof_location, wallet_signature)
        click.echo(f"Done. {result.detail} (uuid={result.uuid})")

    _run(_bind())


# ── KVService ──────────────────────────────────────────


@cli.group()
def kv():
    """KVService lookups and modifications."""
    pass


@kv.command("get")
@click.option("--avatar", default=None, help="Avatar public key hex")
@click.option("--platform", default=None, type=click.Choice(PLATFORMS))
@click.option("--identity", default=None, help="Identity on the platform")
@click.pass_context
def kv_get(ctx: click.Context, avatar: str | None, platform: str | None, identity: str | None) -> None:
    """Show KV records by avatar, or by platform + identity."""
    cfg = _config(ctx)
    client = KVServiceClient.from_config(cfg)

    if avatar:
        records = _run(client.find_by_avatar(avatar))
        if not records:
            click.echo("No KV records.")
        for r in records:
            click.echo(f"[{r.platform.value}] {r.identity}: {json.dumps(r.content, sort_keys=True)}")
    elif platform and identity:
        values = _run(client.find_by_platform_identity(platform, identity))
        if not values:
            click.echo("No KV records.")
        for v in values:
            click.echo(f"{v.avatar.pk_hex()}: {json.dumps(v.content, sort_keys=True)}")
    else:
        click.echo("Specify --avatar, or both --platform and --identity.", err=True)
        sys.exit(1)


@kv.command("set")
@click.option("--platform", default="twitter", type=click.Choice(PLATFORMS))
@click.option("--identity", required=True, help="Identity the KV record lives under")
@click.option("--patch", "patch_json", required=True, help="JSON object to merge (null deletes a key)")
@click.option("--secret", default=None, help="Avatar secret key hex")
@click.option("--avatar", default=None, help="Avatar public key hex (sign elsewhere)")
@click.pass_context
def kv_set(
    ctx: click.Context,
    platform: str,
    identity: str,
    patch_json: str,
    secret: str | None,
    avatar: str | None,
) -> None:
    """Apply a JSON patch to an avatar's KV record."""
    cfg = _config(ctx)
    try:
        patch = json.loads(patch_json)
    except json.JSONDecodeError as exc:
        click.echo(f"Error: --patch is not valid JSON: {exc}", err=True)
        sys.exit(1)
    if not isinstance(patch, dict):
        click.echo("Error: --patch must be a JSON object.", err=True)
        sys.exit(1)

    pair = _avatar(cfg, secret, avatar)
    client = KVServiceClient.from_config(cfg)
    procedure = client.procedure(pair, platform, identity, patch)

    async def _set():
        await procedure.begin()
        _sign_or_prompt(procedure, pair)

        result = await procedure.submit()
        click.echo(f"Done. {result.detail} (uuid={result.uuid})")

    _run(_set())


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
