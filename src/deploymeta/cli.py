"""
deploymeta command line.

Reconciles the resources declared in a desired-state YAML file against the
Factory deployment API and keeps a local JSON state file in sync.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from rich.console import Console
from rich.table import Table

from deploymeta.config import FactoryContext, get_settings
from deploymeta.core.errors import PreconditionFailed, main_with_error_handling
from deploymeta.logging import configure_logging
from deploymeta.planner import PlanResult, apply_plan, load_desired, plan, refresh
from deploymeta.providers import create_adapter
from deploymeta.resources import AttributeRecord, Operation, ResourcePolicy, apply, get_policy, list_policies
from deploymeta.resources.adapter import RemoteAdapter
from deploymeta.state import load_state, save_state

console = Console()

ACTION_STYLES = {
    "create": "[green]+ create[/green]",
    "update": "[yellow]~ update[/yellow]",
    "delete": "[red]- delete[/red]",
    "read": "[cyan]> read[/cyan]",
    "noop": "[dim]  no-op[/dim]",
}


class AdapterCache:
    """Builds one remote adapter per kind on first use."""

    def __init__(self, context: FactoryContext) -> None:
        self._context = context
        self._adapters: dict[str, RemoteAdapter] = {}

    def __call__(self, kind: str) -> RemoteAdapter:
        if kind not in self._adapters:
            self._adapters[kind] = create_adapter(kind, self._context)
        return self._adapters[kind]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="deploymeta", description="Deployment resource reconciliation")
    parser.add_argument("--state", help="Path to the state file", default=None)
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)", default=None)
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("kinds", help="List supported resource kinds")

    schema_parser = subparsers.add_parser("schema", help="Show the attributes of a resource kind")
    schema_parser.add_argument("kind", help="Resource kind, e.g. dns_record")

    plan_parser = subparsers.add_parser("plan", help="Show the changes apply would make")
    plan_parser.add_argument("-f", "--file", required=True, help="Desired state YAML file")

    apply_parser = subparsers.add_parser("apply", help="Reconcile desired state with the remote service")
    apply_parser.add_argument("-f", "--file", required=True, help="Desired state YAML file")
    apply_parser.add_argument("--dry-run", action="store_true", help="Plan only, make no changes")
    apply_parser.add_argument("--no-refresh", action="store_true", help="Skip refreshing state before planning")

    subparsers.add_parser("refresh", help="Refresh state from the remote service")

    import_parser = subparsers.add_parser("import", help="Adopt an existing remote resource into state")
    import_parser.add_argument("address", help="State address for the resource")
    import_parser.add_argument("kind", help="Resource kind")
    import_parser.add_argument("id", help="Remote identifier")

    delete_parser = subparsers.add_parser("delete", help="Delete a resource and drop it from state")
    delete_parser.add_argument("address", help="State address of the resource")

    subparsers.add_parser("deployment", help="Show deployment metadata")
    return parser


def _state_path(value: str | None) -> Path:
    return Path(value or get_settings().state_path).expanduser()


def _adapters() -> AdapterCache:
    return AdapterCache(FactoryContext.from_settings(get_settings()))


def _display_value(policy: ResourcePolicy, name: str, value: object) -> str:
    spec = policy.fields.get(name)
    if spec is not None and spec.sensitive and value:
        return "(sensitive)"
    if isinstance(value, tuple):
        return ", ".join(value)
    return "" if value is None else str(value)


def print_record(policy: ResourcePolicy, record: AttributeRecord) -> None:
    table = Table(title=policy.type_name, show_header=True)
    table.add_column("Attribute")
    table.add_column("Value")
    for name, value in record.items():
        table.add_row(name, _display_value(policy, name, value))
    console.print(table)


def print_plan(result: PlanResult) -> None:
    for change in result.changes:
        label = ACTION_STYLES.get(change.action, change.action)
        detail = f" ({', '.join(change.fields)})" if change.fields else ""
        console.print(f"  {label} {change.address} [dim]{change.kind}[/dim]{detail}")
    summary = result.summary()
    console.print(
        f"\nPlan: {summary.get('create', 0)} to create, {summary.get('update', 0)} to update, "
        f"{summary.get('delete', 0)} to delete."
    )


def _cmd_kinds() -> int:
    table = Table(show_header=True)
    table.add_column("Kind")
    table.add_column("Identifier")
    table.add_column("Update")
    table.add_column("Delete")
    table.add_column("Import")
    for policy in list_policies():
        table.add_row(
            policy.kind,
            policy.identifier_field or "-",
            "read-only" if policy.read_only else policy.update_semantics.value,
            "read-only" if policy.read_only else policy.delete_semantics.value,
            "yes" if policy.import_supported else "no",
        )
    console.print(table)
    return 0


def _cmd_schema(kind: str) -> int:
    policy = get_policy(kind)
    schema = policy.schema()
    console.print(f"[bold]{schema.name}[/bold]: {schema.description}")
    for name, description in schema.attributes.items():
        flags = []
        if name == policy.identifier_field:
            flags.append("identifier")
        if name in policy.immutable_fields:
            flags.append("immutable")
        if policy.fields[name].computed:
            flags.append("computed")
        suffix = f" [dim]({', '.join(flags)})[/dim]" if flags else ""
        console.print(f"  {name}{suffix}: {description}")
    return 0


def _cmd_plan(args: argparse.Namespace) -> int:
    desired = load_desired(Path(args.file))
    state = load_state(_state_path(args.state))
    print_plan(plan(desired, state))
    return 0


def _cmd_apply(args: argparse.Namespace) -> int:
    desired = load_desired(Path(args.file))
    state_path = _state_path(args.state)
    state = load_state(state_path)
    adapters = _adapters()

    try:
        if not args.no_refresh:
            for address in refresh(state, adapters):
                console.print(f"[yellow]{address} no longer exists remotely; removed from state[/yellow]")

        result = plan(desired, state)
        print_plan(result)
        if args.dry_run:
            return 0

        applied = apply_plan(result, desired, state, adapters)
    finally:
        if not args.dry_run:
            save_state(state, state_path)

    console.print(f"[bold green]Applied {len(applied)} change(s)[/bold green] → [cyan]{state_path}[/cyan]")
    return 0


def _cmd_refresh(args: argparse.Namespace) -> int:
    state_path = _state_path(args.state)
    state = load_state(state_path)
    try:
        drifted = refresh(state, _adapters())
    finally:
        save_state(state, state_path)
    for address in drifted:
        console.print(f"[yellow]{address} no longer exists remotely; removed from state[/yellow]")
    console.print(f"Refreshed {len(state.resources)} resource(s)")
    return 0


def _cmd_import(args: argparse.Namespace) -> int:
    policy = get_policy(args.kind)
    state_path = _state_path(args.state)
    state = load_state(state_path)
    if state.get(args.address) is not None:
        raise PreconditionFailed(
            f"Address '{args.address}' is already present in state",
            kind=policy.kind,
            operation=Operation.IMPORT.value,
            identifier=args.id,
        )
    result = apply(policy.kind, Operation.IMPORT, import_id=args.id, adapter=_adapters()(policy.kind))
    state.set(args.address, policy.kind, result.state)  # type: ignore[arg-type]
    save_state(state, state_path)
    console.print(f"[green]Imported {policy.type_name} '{args.id}' as {args.address}[/green]")
    return 0


def _cmd_delete(args: argparse.Namespace) -> int:
    state_path = _state_path(args.state)
    state = load_state(state_path)
    entry = state.get(args.address)
    if entry is None:
        console.print(f"[yellow]{args.address} is not in state; nothing to delete[/yellow]")
        return 0
    if not get_policy(entry.kind).read_only:
        apply(entry.kind, Operation.DELETE, prior=entry.attributes, adapter=_adapters()(entry.kind))
    state.remove(args.address)
    save_state(state, state_path)
    console.print(f"[red]Deleted {args.address}[/red]")
    return 0


def _cmd_deployment() -> int:
    policy = get_policy("deployment")
    result = apply(policy.kind, Operation.READ, adapter=_adapters()(policy.kind))
    if result.state is None:
        console.print("[yellow]Deployment not found[/yellow]")
        return 1
    print_record(policy, result.state)
    return 0


@main_with_error_handling()
def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)

    if args.command == "kinds":
        return _cmd_kinds()
    if args.command == "schema":
        return _cmd_schema(args.kind)
    if args.command == "plan":
        return _cmd_plan(args)
    if args.command == "apply":
        return _cmd_apply(args)
    if args.command == "refresh":
        return _cmd_refresh(args)
    if args.command == "import":
        return _cmd_import(args)
    if args.command == "delete":
        return _cmd_delete(args)
    if args.command == "deployment":
        return _cmd_deployment()

    parser.print_help()
    return 1


if __name__ == "__main__":  # pragma: no cover - exercised via module entrypoint
    raise SystemExit(main())
