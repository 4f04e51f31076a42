"""CLI interface for dirmirror."""

import logging
from pathlib import Path
from typing import Any, Callable, Optional

import click

from .config import SUPPORTED_PROTOCOLS, config
from .exceptions import MirrorConfigError, MirrorError
from .output import OutputFormatter
from .sync import MirrorPair, SyncEngine
from .transport import FTPConfig, FTPTransport, HTTPTransport, RetryingTransport
from .transport.base import Transport
from .utils import DEFAULT_FTP_PORT, format_size

logger = logging.getLogger(__name__)


def build_transport(
    protocol: str,
    host: str,
    username: str,
    password: str,
    port: Optional[int] = None,
    timeout: Optional[float] = None,
    retries: int = 0,
) -> Transport:
    """Create the transport for a remote host.

    Args:
        protocol: ``ftp`` or ``http``
        host: Host name (FTP) or base URL (HTTP)
        username: User name for the login / basic auth
        password: Password for the login / basic auth
        port: Optional port override
        timeout: Network timeout in seconds (config default if None)
        retries: Number of retries per remote call (0 disables retrying)

    Returns:
        Transport implementing both Lister and Downloader
    """
    if timeout is None:
        timeout = config.timeout

    transport: Transport
    if protocol == "ftp":
        transport = FTPTransport(
            FTPConfig(
                host=host,
                user=username,
                password=password,
                port=port or DEFAULT_FTP_PORT,
                timeout=timeout,
            )
        )
    elif protocol == "http":
        transport = HTTPTransport(
            host,
            username=username or None,
            password=password,
            timeout=timeout,
            port=port,
        )
    else:
        raise MirrorConfigError(f"Unsupported protocol: {protocol}")

    if retries > 0:
        return RetryingTransport(transport, max_retries=retries)
    return transport


def connection_options(func: Callable) -> Callable:
    """Options shared by every command talking to a remote host."""
    func = click.option(
        "--retries",
        type=click.IntRange(min=0),
        default=None,
        help="Retry failed remote calls this many times (default: 0)",
    )(func)
    func = click.option(
        "--port", type=click.IntRange(1, 65535), default=None, help="Remote port"
    )(func)
    func = click.option(
        "--protocol",
        "-P",
        type=click.Choice(SUPPORTED_PROTOCOLS),
        default=None,
        help="Transport protocol (default: ftp)",
    )(func)
    func = click.option(
        "--password",
        envvar="DIRMIRROR_PASSWORD",
        default=None,
        help="Password (prompted for if not given)",
    )(func)
    return func


def _open_transport(
    ctx: Any,
    host: str,
    username: str,
    password: Optional[str],
    protocol: Optional[str],
    port: Optional[int],
    retries: Optional[int],
) -> Transport:
    out: OutputFormatter = ctx.obj["out"]
    try:
        if password is None:
            password = config.password
        if password is None:
            password = click.prompt("Password", hide_input=True)
        return build_transport(
            protocol or config.protocol,
            host,
            username,
            password,
            port=port if port is not None else config.port,
            retries=retries if retries is not None else config.retries,
        )
    except MirrorConfigError as e:
        out.error(str(e))
        ctx.exit(1)


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="dirmirror")
@click.pass_context
def main(ctx: Any, quiet: bool, json: bool, verbose: bool) -> None:
    """dirmirror - Mirror a remote directory tree onto a local directory."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)

    # Configure logging based on verbose flag
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("dirmirror").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.argument("host")
@click.argument("username")
@click.argument("remote_dir")
@click.argument(
    "local_dir", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.argument("seconds", type=click.IntRange(min=1))
@connection_options
@click.option("--once", is_flag=True, help="Run a single pass and exit")
@click.option(
    "--dry-run", is_flag=True, help="Show what would be done without changing files"
)
@click.pass_context
def sync(
    ctx: Any,
    host: str,
    username: str,
    remote_dir: str,
    local_dir: Path,
    seconds: int,
    password: Optional[str],
    protocol: Optional[str],
    port: Optional[int],
    retries: Optional[int],
    once: bool,
    dry_run: bool,
) -> None:
    """Keep LOCAL_DIR mirrored from REMOTE_DIR on HOST.

    A pass runs every SECONDS seconds until one fails. Local files that do
    not exist remotely (by name, type and size) are deleted.
    """
    out: OutputFormatter = ctx.obj["out"]
    pair = MirrorPair(local=local_dir, remote=remote_dir, interval=seconds)
    transport = _open_transport(
        ctx, host, username, password, protocol, port, retries
    )
    engine = SyncEngine(transport, transport, out)

    if not out.quiet:
        out.info(f"Mirroring {host}:{pair.remote} -> {pair.local}")
        if not (once or dry_run):
            out.info(f"Interval: {seconds}s")
        out.print("")

    try:
        if dry_run:
            stats = engine.sync_once(pair, dry_run=True)
            if out.json_output:
                out.output_json(stats)
        elif once:
            engine.run_forever(pair, max_passes=1)
        else:
            engine.run_forever(pair)
    except MirrorError as e:
        out.error(f"Sync failed: {e}")
        ctx.exit(1)
    except KeyboardInterrupt:
        out.warning("Sync cancelled by user")
        ctx.exit(130)
    finally:
        transport.close()


@main.command(name="ls")
@click.argument("host")
@click.argument("username")
@click.argument("remote_dir", default="/")
@connection_options
@click.pass_context
def ls(
    ctx: Any,
    host: str,
    username: str,
    remote_dir: str,
    password: Optional[str],
    protocol: Optional[str],
    port: Optional[int],
    retries: Optional[int],
) -> None:
    """List REMOTE_DIR on HOST."""
    out: OutputFormatter = ctx.obj["out"]
    transport = _open_transport(
        ctx, host, username, password, protocol, port, retries
    )

    try:
        entries = transport.list(remote_dir)
    except MirrorError as e:
        out.error(str(e))
        ctx.exit(1)
    finally:
        transport.close()

    entries = sorted(entries, key=lambda entry: (not entry.is_dir, entry.name))
    if out.json_output:
        out.output_json(
            [
                {"name": e.name, "path": e.path, "is_dir": e.is_dir, "size": e.size}
                for e in entries
            ]
        )
        return

    if not entries:
        out.info("(empty)")
        return
    for entry in entries:
        if entry.is_dir:
            click.echo(f"{'<DIR>':>10}  {entry.name}/")
        else:
            click.echo(f"{format_size(entry.size):>10}  {entry.name}")


if __name__ == "__main__":
    main()
