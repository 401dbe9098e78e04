#!/usr/bin/env python3
"""
Shared Credentials CLI

Resolves AWS credentials from a shared credentials file profile, assuming a
role when the profile is role-chained.

Commands:
    get         Resolve credentials and print them
    profiles    List profiles in the credentials file
    cache-key   Print the cache key for a profile, role and session name

Usage:
    sharedcreds get --profile ops --cache
    sharedcreds get --format env
    sharedcreds profiles
    sharedcreds cache-key default arn:aws:iam::123456789012:role/Ops my-session

The JSON output of ``get`` follows the ``credential_process`` format, so the
command can back a profile in ~/.aws/config.

Module: cli
"""

import json
import shlex
import sys
from datetime import timedelta
from typing import Any, Optional

import click

from .cache_provider import cache_key
from .config import Settings
from .errors import SharedCredentialsError
from .logging_config import configure_logging
from .models import CredentialValue
from .profiles import list_profiles, resolve_credentials_filename
from .version import __version__


def format_json(data: Any, pretty: bool = True) -> str:
    """Format data as JSON string"""
    if pretty:
        return json.dumps(data, indent=2, ensure_ascii=False)
    return json.dumps(data, ensure_ascii=False)


def handle_error(error: Exception, verbose: bool = False) -> None:
    """Handle and format errors"""
    if verbose and isinstance(error, SharedCredentialsError):
        click.echo(error.format(), err=True)
    elif verbose:
        click.echo(f"Error: {type(error).__name__}: {error}", err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def credential_process_output(value: CredentialValue) -> dict:
    output = {
        "Version": 1,
        "AccessKeyId": value.access_key_id,
        "SecretAccessKey": value.secret_access_key,
    }
    if value.session_token:
        output["SessionToken"] = value.session_token
    if value.expires_at:
        output["Expiration"] = value.expires_at.isoformat()
    return output


@click.group()
@click.version_option(version=__version__, prog_name="sharedcreds")
@click.option("--log-level", default=None, help="Logging level (default: LOG_LEVEL or WARNING)")
@click.option("--json-logs/--console-logs", default=None, help="Log format (default: LOG_FORMAT or console)")
def cli(log_level: Optional[str], json_logs: Optional[bool]):
    """
    Shared Credentials Resolver

    Reads profiles from the shared credentials file and assumes roles for
    role-chained profiles, optionally caching sessions like the AWS CLI.
    """
    settings = Settings(log_level=log_level or "", json_logs=json_logs)
    configure_logging(settings.log_level, settings.json_logs)


@cli.command()
@click.option("--profile", "-p", default=None, help="Profile to resolve (default: AWS_PROFILE or default)")
@click.option("--file", "-f", "filename", default=None, help="Credentials file path")
@click.option("--cache/--no-cache", default=None, help="Cache assumed-role sessions (default: SHAREDCREDS_CACHE)")
@click.option("--cache-dir", default=None, help="Session cache directory (default: ~/.aws/cli/cache)")
@click.option("--duration", type=click.IntRange(900, 43200), default=None, help="Session lifetime in seconds")
@click.option("--expiry-window", type=click.IntRange(0), default=None, help="Refresh this many seconds early")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "env"], case_sensitive=False),
    default="json",
    show_default=True,
    help="Output format",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose error output")
def get(
    profile: Optional[str],
    filename: Optional[str],
    cache: Optional[bool],
    cache_dir: Optional[str],
    duration: Optional[int],
    expiry_window: Optional[int],
    output_format: str,
    verbose: bool,
):
    """
    Resolve credentials for a profile

    Examples:
        sharedcreds get
        sharedcreds get --profile ops --cache
        eval "$(sharedcreds get --profile ops --format env)"
    """
    try:
        settings = Settings(
            filename=filename,
            profile=profile,
            cache=cache,
            cache_dir=cache_dir,
            duration=timedelta(seconds=duration) if duration is not None else None,
            expiry_window=timedelta(seconds=expiry_window) if expiry_window is not None else None,
        )
        provider = settings.build_provider()
        value = provider.retrieve()

        for cache_error in provider.cache_errors:
            click.echo(f"Warning: {cache_error}", err=True)

        if output_format.lower() == "env":
            for name, env_value in value.to_env().items():
                click.echo(f"export {name}={shlex.quote(env_value)}")
        else:
            click.echo(format_json(credential_process_output(value)))

    except (SharedCredentialsError, ValueError) as e:
        handle_error(e, verbose)


@cli.command()
@click.option("--file", "-f", "filename", default=None, help="Credentials file path")
@click.option("--verbose", "-v", is_flag=True, help="Verbose error output")
def profiles(filename: Optional[str], verbose: bool):
    """
    List profiles in the credentials file

    Examples:
        sharedcreds profiles
        sharedcreds profiles --file ./credentials
    """
    try:
        for name in list_profiles(resolve_credentials_filename(filename)):
            click.echo(name)
    except SharedCredentialsError as e:
        handle_error(e, verbose)


@cli.command("cache-key")
@click.argument("profile")
@click.argument("role_arn")
@click.argument("session_name", required=False, default="")
def cache_key_command(profile: str, role_arn: str, session_name: str):
    """
    Print the cache key for a profile, role ARN and session name

    Examples:
        sharedcreds cache-key default arn:aws:iam::123456789012:role/Ops
        sharedcreds cache-key default arn:aws:iam::123456789012:role/Ops my-session
    """
    click.echo(cache_key(profile, role_arn, session_name))


def main():
    """Main entry point"""
    cli()


if __name__ == "__main__":
    main()
