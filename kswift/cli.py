"""Command-line interface for kswift.

Usage:
  kswift -U demo -P secret -T demo-project -A https://identity/v2.0 auth
  kswift list photos --prefix 2024/
  kswift upload photos cat.jpg ./cat.jpg

Every credential option falls back to the matching OS_* environment variable.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import tempfile
from typing import Callable, Dict, Optional, Sequence

from .client import SwiftClient
from .config import Credentials
from .exceptions import ConfigError, SwiftError
from .operations import DEFAULT_LIMIT, Format
from .transport import Response

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kswift", description="Swift object storage client")
    parser.add_argument("-U", "--user", help="username (or env OS_USERNAME)")
    parser.add_argument("-T", "--project", help="project/tenant name (or env OS_PROJECT_NAME)")
    parser.add_argument("-A", "--auth-url", dest="auth_url", help="identity service URL (or env OS_AUTH_URL)")
    parser.add_argument("-P", "--password", help="password (or env OS_PASSWORD)")
    parser.add_argument("-R", "--region", help="region (or env OS_REGION_NAME)")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("auth", help="authenticate and show the storage URL")
    commands.add_parser("stat", help="show account metadata")

    list_cmd = commands.add_parser("list", help="list containers, or objects in a container")
    list_cmd.add_argument("container", nargs="?")
    list_cmd.add_argument("--prefix")
    list_cmd.add_argument("--limit", type=int, default=DEFAULT_LIMIT)

    download = commands.add_parser("download", help="download an object")
    download.add_argument("container")
    download.add_argument("object")
    download.add_argument("-o", "--output", help="output file (default: stdout)")

    upload = commands.add_parser("upload", help="upload a local file")
    upload.add_argument("container")
    upload.add_argument("object")
    upload.add_argument("file")
    upload.add_argument("--content-type", dest="content_type")

    return parser


def resolve_credentials(args: argparse.Namespace, environ=None) -> Credentials:
    """Merge command-line options with OS_* environment defaults."""
    env = dict(os.environ if environ is None else environ)
    overrides = {
        "OS_USERNAME": args.user,
        "OS_PASSWORD": args.password,
        "OS_PROJECT_NAME": args.project,
        "OS_AUTH_URL": args.auth_url,
        "OS_REGION_NAME": args.region,
    }
    env.update({name: value for name, value in overrides.items() if value})
    return Credentials.from_env(env)


def _check(response: Response, action: str) -> int:
    if response.ok:
        return 0
    print(f"{action} failed: HTTP {response.status}", file=sys.stderr)
    return 1


def cmd_auth(client: SwiftClient, args: argparse.Namespace) -> int:
    authorization = client.authorization()
    print(f"Storage URL: {authorization.storage_url}")
    state = getattr(client.auth, "state", None)
    if state is not None and state.expires is not None:
        print(f"Expires: {state.expires.isoformat()}")
    return 0


def cmd_stat(client: SwiftClient, args: argparse.Namespace) -> int:
    with client.head_account() as response:
        status = _check(response, "stat")
        if status:
            return status
        for name in sorted(response.headers):
            print(f"{name}: {response.headers[name]}")
    return 0


def cmd_list(client: SwiftClient, args: argparse.Namespace) -> int:
    if args.container:
        response = client.get_container(
            args.container, prefix=args.prefix, limit=args.limit, format=Format.PLAIN
        )
    else:
        response = client.get_account(prefix=args.prefix, limit=args.limit, format=Format.PLAIN)
    with response:
        status = _check(response, "list")
        if status:
            return status
        sys.stdout.write(response.text())
    return 0


def _save(response: Response, path: str) -> None:
    """Stream the body into ``path``; a failed download leaves no file behind."""
    directory = os.path.dirname(os.path.abspath(path))
    with tempfile.NamedTemporaryFile(dir=directory, prefix=".kswift-", delete=False) as f:
        tmp_path = f.name
        try:
            for chunk in response.body:
                f.write(chunk)
        except BaseException:
            f.close()
            os.unlink(tmp_path)
            raise
    os.replace(tmp_path, path)


def cmd_download(client: SwiftClient, args: argparse.Namespace) -> int:
    with client.get_object(args.container, args.object) as response:
        status = _check(response, "download")
        if status:
            return status
        if args.output:
            _save(response, args.output)
        else:
            for chunk in response.body:
                sys.stdout.buffer.write(chunk)
            sys.stdout.flush()
    return 0


def cmd_upload(client: SwiftClient, args: argparse.Namespace) -> int:
    with open(args.file, "rb") as f:
        response = client.put_object(args.container, args.object, f, content_type=args.content_type)
    with response:
        return _check(response, "upload")


COMMANDS: Dict[str, Callable[[SwiftClient, argparse.Namespace], int]] = {
    "auth": cmd_auth,
    "stat": cmd_stat,
    "list": cmd_list,
    "download": cmd_download,
    "upload": cmd_upload,
}


def main(argv: Optional[Sequence[str]] = None, client_factory=SwiftClient) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        credentials = resolve_credentials(args)
    except ConfigError as exc:
        print(exc, file=sys.stderr)
        return 2

    try:
        with client_factory(credentials) as client:
            return COMMANDS[args.command](client, args)
    except SwiftError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(exc, file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
