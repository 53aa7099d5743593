import importlib
import sys
from types import SimpleNamespace
from typing import Any, List, Optional
import typer
from typing_extensions import Annotated

from ._models import IdStrategy
from .config import connect, load_config
from .exceptions import DocumentNotFound
from .ids import resolve_strategy

app = typer.Typer()


def _load_record(dotted_path: str) -> type:
    sys.path.append(".")
    path, name = dotted_path.rsplit(".", 1)
    mod = importlib.import_module(path)
    return getattr(mod, name)


def _parse_id(record_cls: type, value: str) -> Any:
    if resolve_strategy(record_cls) is IdStrategy.sequential and value.isdigit():
        return int(value)
    return value


def _parse_sort(fields: list[str]) -> list[tuple[str, int]]:
    return [(f[1:], -1) if f.startswith("-") else (f, 1) for f in fields]


def _parse_where(pairs: list[str]) -> dict[str, str]:
    query = {}
    for pair in pairs:
        key, _, value = pair.partition("=")
        query[key] = value
    return query


@app.callback()
def main(
    ctx: typer.Context,
    record: str = typer.Option(None, envvar="DOCRECORDS_RECORD"),
) -> None:
    if not record:
        typer.secho(
            "Missing record; pass --record or set env[DOCRECORDS_RECORD]",
            fg=typer.colors.RED,
        )
        raise typer.Exit(1)
    config = load_config()
    ctx.obj = SimpleNamespace(record_cls=_load_record(record), store=connect(config))


@app.command()
def count(
    ctx: typer.Context,
    where: Annotated[Optional[List[str]], typer.Option()] = None,
) -> None:
    typer.echo(ctx.obj.record_cls.count(ctx.obj.store, _parse_where(where or [])))


@app.command()
def search(
    ctx: typer.Context,
    where: Annotated[Optional[List[str]], typer.Option()] = None,
    sort: Annotated[Optional[List[str]], typer.Option()] = None,
    skip: int = typer.Option(0),
    limit: int = typer.Option(0),
) -> None:
    results = ctx.obj.record_cls.search(
        ctx.obj.store,
        _parse_where(where or []),
        _parse_sort(sort or []),
        skip=skip,
        limit=limit,
    )
    typer.echo(results.to_json())


@app.command()
def show(ctx: typer.Context, id: str) -> None:
    record_cls = ctx.obj.record_cls
    try:
        record = record_cls.load(ctx.obj.store, _parse_id(record_cls, id))
    except DocumentNotFound:
        typer.secho(f"{id} not found", fg=typer.colors.RED)
        raise typer.Exit(1)
    typer.echo(record.to_json())


@app.command()
def delete(ctx: typer.Context, id: str) -> None:
    record_cls = ctx.obj.record_cls
    try:
        record = record_cls.load(ctx.obj.store, _parse_id(record_cls, id))
    except DocumentNotFound:
        typer.secho(f"{id} not found", fg=typer.colors.RED)
        raise typer.Exit(1)
    if record.delete():
        typer.secho(f"deleted {id}", fg=typer.colors.GREEN)
    else:
        typer.secho(f"could not delete {id}", fg=typer.colors.RED)
        raise typer.Exit(1)


@app.command()
def ensure_index(
    ctx: typer.Context,
    field: str,
    unique: bool = typer.Option(False),
) -> None:
    name = ctx.obj.record_cls.ensure_index(ctx.obj.store, field, unique=unique)
    typer.secho(f"index {name} ready", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
