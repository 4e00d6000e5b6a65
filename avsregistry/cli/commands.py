"""Typer CLI commands with Rich formatting."""

import asyncio
import json
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..core.config import Settings, get_settings
from ..core.errors import AvsRegistryError
from ..core.types import OperatorStateAtBlock, to_operator_id
from ..services.reader import AvsRegistryChainReader, build_avs_registry_chain_reader

app = typer.Typer(
    name="avsregistry",
    help="AVS Registry reader - query operators, stakes and BLS keys",
)
console = Console()

RpcOption = typer.Option(None, "--rpc", "-r", help="Custom RPC URL")
CoordinatorOption = typer.Option(
    None, "--registry-coordinator", help="RegistryCoordinator address"
)
RetrieverOption = typer.Option(
    None, "--operator-state-retriever", help="OperatorStateRetriever address"
)


def run_async(coro):
    """Helper to run async functions from sync CLI."""
    return asyncio.run(coro)


def _settings(
    rpc_url: str | None, registry_coordinator: str | None, operator_state_retriever: str | None
) -> Settings:
    overrides = {
        "eth_rpc_url": rpc_url,
        "registry_coordinator_address": registry_coordinator,
        "operator_state_retriever_address": operator_state_retriever,
    }
    return get_settings().model_copy(update={k: v for k, v in overrides.items() if v})


def _query(settings: Settings, query):
    """Build a reader and run one query against it in a single event loop."""

    async def _run():
        reader = await build_avs_registry_chain_reader(settings=settings)
        return await query(reader)

    try:
        return run_async(_run())
    except (AvsRegistryError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def parse_quorums(value: str) -> list[int]:
    """Parse "0,1,3" into quorum ids."""
    try:
        quorums = [int(q) for q in value.split(",") if q.strip()]
    except ValueError:
        raise typer.BadParameter(f"Quorums must be comma separated numbers: {value}")
    if not quorums or any(not 0 <= q <= 255 for q in quorums):
        raise typer.BadParameter(f"Quorums must be between 0 and 255: {value}")
    return quorums


def format_operator_state(quorums: list[int], state: OperatorStateAtBlock) -> dict:
    return {
        str(quorum): [
            {
                "address": operator.address,
                "operator_id": "0x" + operator.operator_id.hex(),
                "stake": operator.stake,
            }
            for operator in operators
        ]
        for quorum, operators in zip(quorums, state)
    }


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    level = "DEBUG" if verbose else get_settings().log_level
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command(name="quorum-count")
def quorum_count(
    rpc_url: Optional[str] = RpcOption,
    registry_coordinator: Optional[str] = CoordinatorOption,
    operator_state_retriever: Optional[str] = RetrieverOption,
):
    """Show how many quorums the RegistryCoordinator has."""
    settings = _settings(rpc_url, registry_coordinator, operator_state_retriever)

    async def query(reader: AvsRegistryChainReader):
        return await reader.get_quorum_count()

    count = _query(settings, query)
    console.print(f"[bold]Quorum count:[/bold] {count}")


@app.command()
def operators(
    quorums: str = typer.Option("0", "--quorums", "-q", help="Comma separated quorum numbers"),
    block: Optional[int] = typer.Option(None, "--block", "-b", help="Block number (default: current)"),
    rpc_url: Optional[str] = RpcOption,
    registry_coordinator: Optional[str] = CoordinatorOption,
    operator_state_retriever: Optional[str] = RetrieverOption,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """
    List operators and their stakes in the given quorums.

    Examples:
        avsregistry operators --quorums 0
        avsregistry operators --quorums 0,1 --block 1741955 --json
    """
    quorum_ids = parse_quorums(quorums)
    settings = _settings(rpc_url, registry_coordinator, operator_state_retriever)

    async def query(reader: AvsRegistryChainReader):
        if block is None:
            return await reader.get_operators_stake_in_quorums_at_current_block(quorum_ids)
        return await reader.get_operators_stake_in_quorums_at_block(block, quorum_ids)

    state = _query(settings, query)

    if output_json:
        print(json.dumps(format_operator_state(quorum_ids, state), indent=2))
        return

    for quorum, quorum_operators in zip(quorum_ids, state):
        table = Table(title=f"Quorum {quorum}")
        table.add_column("Operator", style="cyan")
        table.add_column("Operator ID", style="dim")
        table.add_column("Stake", style="green", justify="right")
        for operator in quorum_operators:
            table.add_row(operator.address, "0x" + operator.operator_id.hex(), f"{operator.stake:,}")
        console.print(table)
        console.print()


@app.command()
def operator(
    operator_id: str = typer.Argument(..., help="Operator ID (32-byte hex)"),
    block: Optional[int] = typer.Option(None, "--block", "-b", help="Block number (default: current)"),
    rpc_url: Optional[str] = RpcOption,
    registry_coordinator: Optional[str] = CoordinatorOption,
    operator_state_retriever: Optional[str] = RetrieverOption,
):
    """Show the quorums an operator belongs to and its stake in each."""
    settings = _settings(rpc_url, registry_coordinator, operator_state_retriever)

    async def query(reader: AvsRegistryChainReader):
        if block is None:
            return await reader.get_operator_stake_in_quorums_of_operator_at_current_block(operator_id)
        quorum_ids, state = await reader.get_operators_stake_in_quorums_of_operator_at_block(
            operator_id, block
        )
        wanted = to_operator_id(operator_id)
        stakes = {}
        for quorum, quorum_operators in zip(quorum_ids, state):
            stakes[quorum] = next(
                (o.stake for o in quorum_operators if o.operator_id == wanted), 0
            )
        return stakes

    stakes = _query(settings, query)

    if not stakes:
        console.print("[yellow]Operator is not in any quorum[/yellow]")
        return

    table = Table(title=f"Operator {operator_id}")
    table.add_column("Quorum", style="cyan")
    table.add_column("Stake", style="green", justify="right")
    for quorum in sorted(stakes):
        table.add_row(str(quorum), f"{stakes[quorum]:,}")
    console.print(table)


@app.command()
def registered(
    address: str = typer.Argument(..., help="Operator address"),
    rpc_url: Optional[str] = RpcOption,
    registry_coordinator: Optional[str] = CoordinatorOption,
    operator_state_retriever: Optional[str] = RetrieverOption,
):
    """Check whether an address is a registered operator."""
    settings = _settings(rpc_url, registry_coordinator, operator_state_retriever)

    async def query(reader: AvsRegistryChainReader):
        if not await reader.is_operator_registered(address):
            return None
        return await reader.get_operator_id(address)

    operator_id = _query(settings, query)

    if operator_id is None:
        console.print(f"[red]{address} is not registered[/red]")
        raise typer.Exit(1)
    console.print(f"[green]{address} is registered[/green] (operator id 0x{operator_id.hex()})")


@app.command()
def pubkeys(
    from_block: int = typer.Option(0, "--from", help="First block to scan"),
    to_block: Optional[int] = typer.Option(None, "--to", help="Last block to scan (default: latest)"),
    rpc_url: Optional[str] = RpcOption,
    registry_coordinator: Optional[str] = CoordinatorOption,
    operator_state_retriever: Optional[str] = RetrieverOption,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List BLS public keys registered in a block range."""
    settings = _settings(rpc_url, registry_coordinator, operator_state_retriever)

    async def query(reader: AvsRegistryChainReader):
        return await reader.query_existing_registered_operator_pub_keys(
            from_block, "latest" if to_block is None else to_block
        )

    addresses, keys = _query(settings, query)

    if output_json:
        result = [
            {"operator": address, **pub_keys.model_dump()}
            for address, pub_keys in zip(addresses, keys)
        ]
        print(json.dumps(result, indent=2))
        return

    table = Table(title=f"Registered BLS keys ({len(addresses)})")
    table.add_column("Operator", style="cyan")
    table.add_column("G1 X", style="green")
    table.add_column("G1 Y", style="green")
    for address, pub_keys in zip(addresses, keys):
        table.add_row(address, hex(pub_keys.g1.x), hex(pub_keys.g1.y))
    console.print(table)


if __name__ == "__main__":
    app()
