"""
lnstore CLI - operator commands for the node's persistence layer.

Main entry point for all CLI commands.
"""

import asyncio
import logging
from pathlib import Path

import click

from lnstore.core.config import load_config
from lnstore.core.errors import StoreError
from lnstore.core.storage import StorageManager
from lnstore.crypto import generate_mnemonic
from lnstore.utils.logger import setup_logging


def run_with_storage(ctx, action, start: bool = False):
    """Open the stores, run `action(storage)` and close them again."""
    config = ctx.obj["config"]

    async def _run():
        opener = StorageManager.start if start else StorageManager.open
        storage = await opener(config)
        async with storage:
            return await action(storage)

    try:
        return asyncio.run(_run())
    except StoreError as e:
        raise click.ClickException(str(e))


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default=None, help="Storage directory")
@click.option("--env-file", default=None, help="Optional .env file with LNSTORE_* settings")
@click.option("--log-file", is_flag=True, help="Also write logs to <log_dir>/lnstore.log")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, data_dir, env_file, log_file):
    """lnstore - persistence layer for a Lightning/RGB node"""
    storage_dir = Path(data_dir).expanduser() if data_dir else None
    config = load_config(env_file, storage_dir=storage_dir)

    level = logging.DEBUG if debug else logging.INFO
    setup_logging(level=level, log_dir=str(config.log_dir), log_to_file=log_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# =============================================================================
# Wallet Seed Commands
# =============================================================================


@cli.command("init")
@click.option("--mnemonic", "phrase", default=None, help="Existing phrase to import")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Encryption password")
@click.pass_context
def init(ctx, phrase, password):
    """Create (or import) the wallet seed and seal it"""

    async def action(storage):
        storage.secrets.check_already_initialized()
        mnemonic = phrase or generate_mnemonic()
        storage.secrets.save_encrypted_mnemonic(password, mnemonic)
        return mnemonic

    mnemonic = run_with_storage(ctx, action)
    click.echo("✓ Node initialized")
    if not phrase:
        click.echo(f"  Mnemonic: {mnemonic}")
        click.echo("  ⚠️  Write these words down - they cannot be recovered!")


@cli.command("unlock")
@click.option("--password", prompt=True, hide_input=True, help="Encryption password")
@click.pass_context
def unlock(ctx, password):
    """Check that the password opens the stored seed"""

    async def action(storage):
        return storage.secrets.get_mnemonic(password)

    mnemonic = run_with_storage(ctx, action)
    click.echo(f"✓ Unlocked ({len(mnemonic.split())}-word seed)")


@cli.command("restore-legacy-seed")
@click.option("--password", prompt=True, hide_input=True, help="Encryption password")
@click.pass_context
def restore_legacy_seed(ctx, password):
    """Move a file-sealed mnemonic from a backup into the database"""
    storage_dir = ctx.obj["config"].storage_dir

    async def action(storage):
        return storage.secrets.migrate_mnemonic_from_file(storage_dir, password)

    run_with_storage(ctx, action)
    click.echo("✓ Mnemonic migrated to database")


# =============================================================================
# Migration / Sync
# =============================================================================


@cli.command("migrate")
@click.pass_context
def migrate(ctx):
    """Migrate legacy files and refresh mirror files"""

    async def action(storage):
        return storage.last_migration, storage.last_sync

    report, sync = run_with_storage(ctx, action, start=True)
    click.echo(f"Migrated: {', '.join(report.migrated) or '-'}")
    click.echo(f"Channel ID mappings migrated: {report.channel_ids_migrated}")
    for key, problem in report.failed.items():
        click.echo(f"❌ {key}: {problem}")
    click.echo(f"Synced: {', '.join(sync.written) or '-'}")


# =============================================================================
# Config Commands
# =============================================================================


@cli.group()
def config():
    """Node configuration commands"""
    pass


@config.command("get")
@click.argument("key")
@click.pass_context
def config_get(ctx, key):
    """Print a config value"""

    async def action(storage):
        return await storage.db.load_config(key)

    value = run_with_storage(ctx, action)
    if value is None:
        raise click.ClickException(f"{key} is not set")
    click.echo(value)


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.option("--sync/--no-sync", default=True, help="Refresh mirror files afterwards")
@click.pass_context
def config_set(ctx, key, value, sync):
    """Store a config value"""

    async def action(storage):
        await storage.db.save_config(key, value)
        if sync:
            await storage.sync_config_to_files()

    run_with_storage(ctx, action)
    click.echo(f"✓ {key} saved")


@config.command("sync")
@click.pass_context
def config_sync(ctx):
    """Write config values to their mirror files"""

    async def action(storage):
        return await storage.sync_config_to_files()

    report = run_with_storage(ctx, action)
    click.echo(f"Synced: {', '.join(report.written) or '-'}")


# =============================================================================
# Peer Commands
# =============================================================================


@cli.group()
def peers():
    """Channel peer address book"""
    pass


@peers.command("list")
@click.pass_context
def peers_list(ctx):
    """List known channel peers"""

    async def action(storage):
        return await storage.read_channel_peer_data()

    data = run_with_storage(ctx, action)
    if not data:
        click.echo("No peers found.")
        return
    for pubkey, address in sorted(data.items()):
        click.echo(f"  {pubkey}@{address}")


@peers.command("remove")
@click.argument("pubkey")
@click.pass_context
def peers_remove(ctx, pubkey):
    """Forget a channel peer"""

    async def action(storage):
        return await storage.delete_channel_peer(pubkey)

    if run_with_storage(ctx, action):
        click.echo(f"✓ Removed {pubkey}")
    else:
        click.echo(f"Peer {pubkey} not found")


# =============================================================================
# Revoked Token Commands
# =============================================================================


@cli.group()
def tokens():
    """Revoked access tokens"""
    pass


@tokens.command("revoke")
@click.argument("revocation_id")
@click.pass_context
def tokens_revoke(ctx, revocation_id):
    """Record a revocation identifier (hex)"""

    async def action(storage):
        await storage.db.save_revoked_token(revocation_id)

    try:
        bytes.fromhex(revocation_id)
    except ValueError:
        raise click.BadParameter("revocation id must be hex", param_hint="REVOCATION_ID")

    run_with_storage(ctx, action)
    click.echo("✓ Token revoked")


@tokens.command("list")
@click.pass_context
def tokens_list(ctx):
    """List revoked token identifiers"""

    async def action(storage):
        return await storage.revoked_tokens()

    for revocation_id in sorted(run_with_storage(ctx, action)):
        click.echo(f"  {revocation_id.hex()}")


if __name__ == "__main__":
    cli()
