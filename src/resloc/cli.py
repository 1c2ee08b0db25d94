import click
import zrlog

from resloc.boot import init_resloc
from resloc.exc import ResolverError
from resloc.handles.base import HandleKind
from resloc.handles.core import get_handle, resolve_kind
from resloc.idmap import map_id
from resloc.location import Location


@click.group
@click.option("--map", "mappings", multiple=True, metavar="ID=TARGET", help="Map an identifier to another pathname.")
def main(mappings):
    init_resloc("cli")
    log = zrlog.get_logger("resloc.cli")
    for mapping in mappings:
        if "=" not in mapping:
            raise click.BadParameter(f"expected ID=TARGET, got [{mapping}]", param_hint="--map")
        id_, target = mapping.split("=", 1)
        log.debug(f"Mapping [{id_}] to [{target}]")
        map_id(id_, target)


@main.command
@click.argument("path")
def info(path):
    """Show what is known about PATH."""
    loc = Location(path)
    click.echo(f"kind: {loc.kind.value}")
    click.echo(f"absolute_path: {loc.absolute_path()}")
    click.echo(f"name: {loc.name()}")
    click.echo(f"parent: {loc.parent()}")
    click.echo(f"exists: {loc.exists()}")
    click.echo(f"is_directory: {loc.is_directory()}")
    click.echo(f"is_file: {loc.is_file()}")
    click.echo(f"length: {loc.length()}")
    modified = loc.modified_datetime()
    click.echo(f"last_modified: {modified.isoformat() if modified else ''}")


@main.command
@click.argument("path")
def ls(path):
    """List the entries of the directory at PATH."""
    names = Location(path).list()
    if names is None:
        raise click.ClickException(f"[{path}] is not a listable directory")
    for name in names:
        click.echo(name)


@main.command
@click.argument("identifier")
def kind(identifier):
    """Show which kind of handle IDENTIFIER resolves to."""
    click.echo(resolve_kind(identifier).value)


@main.command
@click.argument("identifier")
@click.option("-n", "--bytes", "count", default=16, show_default=True, help="Number of bytes to show.")
def head(identifier, count):
    """Show the first bytes readable through the handle for IDENTIFIER, in hex."""
    try:
        handle_kind = resolve_kind(identifier)
        handle = get_handle(identifier)
        try:
            data = handle.read(count)
        finally:
            if handle_kind != HandleKind.MAPPED_OVERRIDE:
                handle.close()
    except ResolverError as ex:
        raise click.ClickException(str(ex)) from ex
    click.echo(data.hex())
