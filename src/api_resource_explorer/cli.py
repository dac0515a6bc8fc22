"""CLI entry point for api-resource-explorer."""

import json
import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from pydantic_settings import SettingsError

from api_resource_explorer.config import ENV_PREFIX, DiscoveryOptions, QueryOptions, TransformOptions
from api_resource_explorer.errors import ResourceExplorerError
from api_resource_explorer.graph.manager import find_by_name, find_by_path, get_stats
from api_resource_explorer.graph.traversal import find_first
from api_resource_explorer.graph.validator import validate_resources
from api_resource_explorer.parser.base import OpenAPIAnalysis, ParsedResource
from api_resource_explorer.parser.detect import load_json
from api_resource_explorer.parser.schema import resource_schema
from api_resource_explorer.parser.swagger import parse_file
from api_resource_explorer.transform.response import ResponseTransformer


def _settings(options_cls):
    """Options from the environment; a bad value is reported, not raised."""
    try:
        return options_cls()
    except (ValidationError, SettingsError) as e:
        raise click.ClickException(f"Configuration Error: invalid {ENV_PREFIX}* setting\n{e}") from e


def _analyze(doc_path: Path) -> OpenAPIAnalysis:
    options = _settings(DiscoveryOptions)
    try:
        return parse_file(doc_path, options)
    except ResourceExplorerError as e:
        raise click.ClickException(f"{e.category}: {e.message}") from e


def _max_depth() -> int:
    return _settings(QueryOptions).max_depth


def _lookup(resources, name: str) -> ParsedResource | None:
    """Dotted names are resolved as paths, plain names anywhere in the tree."""
    if "." in name:
        return find_by_path(resources, name, max_depth=_max_depth())
    return find_by_name(resources, name, max_depth=_max_depth())


def _echo_tree(resources, indent: int = 0):
    for resource in resources:
        methods = ", ".join(resource.methods)
        click.echo(f"{'  ' * indent}{resource.name}  {resource.path}  [{methods}]")
        _echo_tree(resource.sub_resources, indent + 1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """API Resource Explorer: discover resources in OpenAPI docs and normalize responses."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Print the full analysis as JSON.")
def analyze(doc_path: Path, as_json: bool):
    """Summarize an OpenAPI / Swagger document."""
    analysis = _analyze(doc_path)
    if as_json:
        click.echo(analysis.model_dump_json(indent=2, by_alias=True))
        return

    click.echo(f"{analysis.title} {analysis.version}".strip())
    if analysis.base_url:
        click.echo(f"Base URL: {analysis.base_url}")
    click.echo(f"Paths: {analysis.total_paths}")
    click.echo(f"Operations: {analysis.total_operations}")
    click.echo(f"Resources: {len(analysis.resources)} top-level, {analysis.restful_apis} RESTful")
    if analysis.tags:
        click.echo(f"Tags: {', '.join(analysis.tags)}")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
def resources(doc_path: Path):
    """Print the resource tree."""
    analysis = _analyze(doc_path)
    if not analysis.resources:
        click.echo("No resources found.")
        return
    _echo_tree(analysis.resources)


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.argument("name")
def find(doc_path: Path, name: str):
    """Show one resource by name or dotted path (users.posts)."""
    analysis = _analyze(doc_path)
    resource = _lookup(analysis.resources, name)
    if resource is None:
        raise click.ClickException(f"Resource not found: {name}")

    visit = find_first(analysis.resources, lambda r: r.id == resource.id, _max_depth())
    click.echo(f"Resource: {resource.name} ({resource.id})")
    click.echo(f"Path: {resource.path}")
    if resource.item_path:
        click.echo(f"Item path: {resource.item_path}")
    click.echo(f"Identifier: {resource.id_field}")
    click.echo(f"Methods: {', '.join(resource.methods) or '-'}")
    click.echo(f"Type: {resource.resource_type}")
    if visit is not None and visit.depth > 0:
        names = [a.name for a in visit.ancestors] + [resource.name]
        click.echo(f"Hierarchy: {' > '.join(names)}")
    if resource.sub_resources:
        click.echo(f"Sub-resources: {', '.join(r.name for r in resource.sub_resources)}")
    if resource.schema_:
        click.echo("Fields:")
        for field in resource.schema_:
            marker = "*" if field.required else " "
            click.echo(f"  {marker} {field.name}: {field.type}")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
def stats(doc_path: Path):
    """Print resource counters."""
    analysis = _analyze(doc_path)
    result = get_stats(analysis.resources, _max_depth())
    click.echo(f"Total resources: {result.total}")
    click.echo(f"Top-level: {result.top_level}")
    click.echo(f"RESTful: {result.restful}")
    click.echo(f"With sub-resources: {result.with_sub_resources}")
    click.echo(f"Max depth: {result.max_depth}")
    for method, count in result.operation_counts.items():
        click.echo(f"  {method}: {count}")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
def validate(doc_path: Path):
    """Validate every resource; exits with 1 when any resource has errors."""
    analysis = _analyze(doc_path)
    results = validate_resources(analysis.resources, _max_depth())

    invalid = 0
    for resource_id, result in results.items():
        status = "OK" if result.is_valid else "INVALID"
        click.echo(f"{resource_id}: {status}")
        for message in result.errors:
            click.echo(f"  error: {message}")
        for message in result.warnings:
            click.echo(f"  warning: {message}")
        for message in result.suggestions:
            click.echo(f"  suggestion: {message}")
        if not result.is_valid:
            invalid += 1

    click.echo(f"Validated {len(results)} resources, {invalid} invalid.")
    if invalid:
        sys.exit(1)


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.argument("resource_name")
@click.argument("body_path", type=click.Path(exists=True, path_type=Path))
@click.option("--mode", default="list", type=click.Choice(["list", "single"]), help="Response shape to extract.")
def transform(doc_path: Path, resource_name: str, body_path: Path, mode: str):
    """Normalize a captured JSON response body against a resource's schema."""
    analysis = _analyze(doc_path)
    resource = _lookup(analysis.resources, resource_name)
    if resource is None:
        raise click.ClickException(f"Resource not found: {resource_name}")

    transformer = ResponseTransformer(_settings(TransformOptions))
    try:
        body = load_json(body_path)
        if mode == "list":
            output = transformer.transform_list(body, resource_schema(resource)).model_dump()
        else:
            output = transformer.transform_single(body, resource_schema(resource))
    except ResourceExplorerError as e:
        raise click.ClickException(f"{e.category}: {e.message}") from e

    click.echo(json.dumps(output, indent=2, ensure_ascii=False))
