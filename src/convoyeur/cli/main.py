"""
Convoyeur CLI.

Usage:
    convoyeur networks
    convoyeur balance ADDRESS --network NETWORK
    convoyeur discover ADDRESS [--network NETWORK]
    convoyeur capabilities [--bridge-url URL] [--brand BRAND]
    convoyeur preview --network NETWORK --to ADDRESS [--token KEY ...]
    convoyeur migrate --network NETWORK --to ADDRESS [--token KEY ...] [--yes]
"""

import asyncio
import sys
from typing import List, Optional, Sequence

import click
from eth_utils import to_checksum_address

from convoyeur.application import (
    BalanceResolver,
    BundleManager,
    CapabilityNegotiator,
    TokenDiscoveryAggregator,
)
from convoyeur.config.settings import ConvoyeurConfig, load_config
from convoyeur.domain.entities import Bundle, CallStatus, Token
from convoyeur.domain.exceptions import (
    ConvoyeurException,
    SequentialExecutionError,
    ValidationError,
)
from convoyeur.infrastructure.monitoring import SystemReporter
from convoyeur.infrastructure.wallet import HttpWalletProvider
from convoyeur.registry import NetworkRegistry
from convoyeur.utils.amounts import is_positive
from convoyeur.utils.validation import is_valid_address, shorten_address


def select_tokens(tokens: Sequence[Token], keys: Sequence[str]) -> List[Token]:
    """
    Pick tokens by key, keeping the order of keys.

    A key is "native", a symbol, a contract address, or
    "contract:tokenId" for NFTs. Without keys every funded token except
    the native coin is selected.

    Raises:
        ValidationError: If a key matches nothing
    """
    if not keys:
        return [
            t.with_selection(True)
            for t in tokens
            if not t.is_native and is_positive(t.balance)
        ]

    selected: List[Token] = []
    for key in keys:
        needle = key.strip().lower()
        match = next(
            (
                t
                for t in tokens
                if (needle == "native" and t.is_native)
                or needle in (t.dedup_key, t.symbol.lower())
            ),
            None,
        )
        if match is None:
            raise ValidationError(f"No discovered token matches '{key}'")
        if match.dedup_key not in {s.dedup_key for s in selected}:
            selected.append(match.with_selection(True))
    return selected


def _print_tokens(tokens: Sequence[Token]) -> None:
    for token in tokens:
        flag = "  [suspicious]" if token.is_scam else ""
        if token.is_native:
            location = "native"
        else:
            location = to_checksum_address(token.contract_address)
        click.echo(f"  {str(token):<32} {token.name:<24} {location}{flag}")


def _print_bundle(bundle: Bundle) -> None:
    network = bundle.network
    sender = shorten_address(to_checksum_address(bundle.plan.from_address))
    recipient = shorten_address(to_checksum_address(bundle.plan.to_address))
    click.echo(f"Network:   {network.display_name} ({network.chain_id})")
    click.echo(f"Transfer:  {sender} -> {recipient}")
    click.echo(f"Path:      {bundle.plan.path.value}")
    for index, call in enumerate(bundle.calls, start=1):
        click.echo(f"  {index}. {call.description}")
    for diagnostic in bundle.plan.skipped:
        click.echo(f"  skipped: {diagnostic}")
    click.echo(f"Gas:       {bundle.total_gas}")
    click.echo(f"Est. cost: {bundle.estimated_cost} {network.native_symbol}")


def _fail(message: str) -> None:
    click.echo(message, err=True)
    sys.exit(1)


async def _confirm_suspicious(tokens: List[Token]) -> bool:
    click.echo("The following tokens were flagged as suspicious:")
    for token in tokens:
        click.echo(f"  {token.symbol}: {token.scam_reason or 'no reason given'}")
    return click.confirm("Transfer them anyway?", default=False)


@click.group()
@click.option("--config", "-c", default=None, help="Config file")
@click.option("--verbose", "-v", count=True, help="Increase verbosity")
@click.pass_context
def cli(ctx, config, verbose):
    """Convoyeur - EVM multi-transfer bundler."""
    settings = load_config(config)
    if verbose:
        settings.verbose = min(3, settings.verbose + verbose)
    ctx.obj = {"settings": settings, "registry": NetworkRegistry()}


@cli.command()
@click.pass_obj
def networks(obj):
    """List supported networks."""
    for network in obj["registry"].all():
        atomic = "atomic" if network.atomic_execution_supported else "sequential"
        click.echo(
            f"{network.id:<10} {network.display_name:<18} "
            f"chain {network.chain_id:<9} {network.native_symbol:<11} {atomic}"
        )


@cli.command()
@click.argument("address")
@click.option("--network", "-n", "network_id", required=True, help="Network id")
@click.pass_obj
def balance(obj, address, network_id):
    """Show native balance of ADDRESS."""
    if not is_valid_address(address):
        _fail(f"Invalid address: {address}")
    try:
        network = obj["registry"].get(network_id)
    except ValidationError as e:
        _fail(e.message)

    resolver = BalanceResolver(settings=obj["settings"])
    amount = asyncio.run(resolver.resolve_native_balance(address, network))
    click.echo(f"{amount} {network.native_symbol}")


@cli.command()
@click.argument("address")
@click.option("--network", "-n", "network_id", default=None, help="Network id")
@click.option("--refresh", is_flag=True, help="Ignore cached results")
@click.pass_obj
def discover(obj, address, network_id, refresh):
    """Discover tokens held by ADDRESS (all networks by default)."""
    if not is_valid_address(address):
        _fail(f"Invalid address: {address}")

    registry: NetworkRegistry = obj["registry"]
    try:
        targets = [registry.get(network_id)] if network_id else registry.all()
    except ValidationError as e:
        _fail(e.message)

    aggregator = TokenDiscoveryAggregator(settings=obj["settings"])
    discovered = asyncio.run(aggregator.discover_all(address, targets, refresh))
    counts = aggregator.token_counts(discovered)

    for network in targets:
        click.echo(f"{network.display_name}: {counts[network.id]} holding(s)")
        _print_tokens(discovered[network.id])


@cli.command()
@click.option("--bridge-url", default=None, help="Wallet bridge URL")
@click.option("--brand", default=None, help="Wallet brand (metamask, ambire)")
@click.pass_obj
def capabilities(obj, bridge_url, brand):
    """Show what the connected wallet supports on its active chain."""
    provider = HttpWalletProvider(bridge_url, brand, settings=obj["settings"])
    negotiator = CapabilityNegotiator(settings=obj["settings"])
    caps = asyncio.run(negotiator.negotiate(provider))

    click.echo(f"Atomic batch:      {caps.supports_atomic_batch}")
    click.echo(f"Batching:          {caps.supports_batching_transaction}")
    click.echo(f"Fee sponsorship:   {caps.supports_fee_sponsorship}")
    click.echo(f"Readiness:         {caps.readiness.value}")


def _manager(obj, bridge_url: Optional[str], brand: Optional[str]) -> BundleManager:
    settings: ConvoyeurConfig = obj["settings"]
    return BundleManager(
        HttpWalletProvider(bridge_url, brand, settings=settings),
        registry=obj["registry"],
        settings=settings,
        reporter=SystemReporter.from_settings(settings, name="convoyeur.cli"),
        confirm_suspicious=_confirm_suspicious,
    )


def _wallet_options(func):
    func = click.option("--brand", default=None, help="Wallet brand")(func)
    func = click.option("--bridge-url", default=None, help="Wallet bridge URL")(func)
    func = click.option(
        "--token", "-t", "tokens", multiple=True, help="Token to move (repeatable)"
    )(func)
    func = click.option("--to", "to_address", required=True, help="Recipient")(func)
    func = click.option(
        "--network", "-n", "network_id", required=True, help="Network id"
    )(func)
    return func


@cli.command()
@_wallet_options
@click.pass_obj
def preview(obj, network_id, to_address, tokens, bridge_url, brand):
    """Plan and price a bundle without submitting it."""
    manager = _manager(obj, bridge_url, brand)

    async def run() -> Bundle:
        discovered = await manager.discover(network_id)
        return await manager.prepare(
            select_tokens(discovered, tokens), to_address, network_id
        )

    try:
        bundle = asyncio.run(run())
    except ConvoyeurException as e:
        _fail(e.message)
    _print_bundle(bundle)


@cli.command()
@_wallet_options
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
def migrate(obj, network_id, to_address, tokens, bridge_url, brand, yes):
    """Move the selected tokens to another address."""
    manager = _manager(obj, bridge_url, brand)

    async def run():
        discovered = await manager.discover(network_id)
        bundle = await manager.prepare(
            select_tokens(discovered, tokens), to_address, network_id
        )
        _print_bundle(bundle)
        if not yes and not click.confirm("Submit?", default=False):
            return None
        return await manager.execute(bundle)

    try:
        result = asyncio.run(run())
    except SequentialExecutionError as e:
        for tx_hash in e.result.tx_hashes:
            click.echo(f"  sent: {tx_hash}")
        _fail(f"Stopped at transfer {e.failed_index + 1}: {e.reason}")
    except ConvoyeurException as e:
        _fail(e.message)

    if result is None:
        click.echo("Aborted")
        return

    if result.atomic_downgraded:
        click.echo("Atomic batch unavailable, transfers were sent one by one")
    network = obj["registry"].get(network_id)
    link = network.explorer_tx_url(result.execution_id)
    click.echo(f"Confirmed: {result.execution_id}")
    if link and result.outcomes[0].status != CallStatus.BATCHED:
        click.echo(f"Explorer:  {link}")


def main():
    cli()


if __name__ == "__main__":
    main()
