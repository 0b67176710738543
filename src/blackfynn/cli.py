#!/usr/bin/env python3
"""
Blackfynn CLI

Command-line interface over the Blackfynn client.

Usage:
    blackfynn whoami
    blackfynn organizations
    blackfynn datasets
    blackfynn dataset N:dataset:1234
    blackfynn package N:package:5678
    blackfynn upload N:dataset:1234 data/a.csv data/b.csv [--append] [--destination ID]

Authentication:
    --api-key / --api-secret, or the BLACKFYNN_API_KEY and
    BLACKFYNN_SECRET_KEY environment variables.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from .api import Blackfynn, ProgressUpdate
from .config import DEFAULT_LOG_LEVEL, Config, Environment
from .errors import BlackfynnError, ConfigError, UploadFileError


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blackfynn",
        description="Command-line client for the Blackfynn data platform.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  blackfynn whoami\n"
            "  blackfynn datasets\n"
            "  blackfynn upload N:dataset:1234 scan.nii notes.txt\n"
            "  blackfynn --env development organizations\n"
        ),
    )
    parser.add_argument(
        "--env",
        default=None,
        help="Server environment: local, development or production (default: $BLACKFYNN_ENV)",
    )
    parser.add_argument("--api-key", default=None, help="API key (default: $BLACKFYNN_API_KEY)")
    parser.add_argument("--api-secret", default=None, help="API secret (default: $BLACKFYNN_SECRET_KEY)")

    sub = parser.add_subparsers(dest="command", metavar="command")
    sub.add_parser("whoami", help="Show the logged in user")
    sub.add_parser("organizations", help="List your organizations")
    sub.add_parser("datasets", help="List datasets")

    dataset = sub.add_parser("dataset", help="Show a dataset and its packages")
    dataset.add_argument("dataset_id")

    package = sub.add_parser("package", help="Show a package")
    package.add_argument("package_id")

    upload = sub.add_parser("upload", help="Upload files into a dataset")
    upload.add_argument("dataset_id")
    upload.add_argument("files", nargs="+", help="Files to upload (all in one directory)")
    upload.add_argument("--append", action="store_true", help="Append to an existing package")
    upload.add_argument("--destination", default=None, help="Destination collection or package ID")

    return parser


def _config(args, environ) -> Config:
    config = Config.from_env(environ)
    if args.env:
        config.env = Environment.from_name(args.env)
    return config


def _login(client: Blackfynn, args, environ) -> None:
    api_key = args.api_key or environ.get("BLACKFYNN_API_KEY")
    api_secret = args.api_secret or environ.get("BLACKFYNN_SECRET_KEY")
    if not api_key or not api_secret:
        raise ConfigError("BLACKFYNN_API_KEY and BLACKFYNN_SECRET_KEY must be set")
    client.login(api_key, api_secret)


def _cmd_whoami(client: Blackfynn, args) -> None:
    user = client.get_user()
    print(f"{user.full_name} <{user.email}>")
    print(f"  id:           {user.id}")
    print(f"  organization: {client.current_organization or '-'}")


def _cmd_organizations(client: Blackfynn, args) -> None:
    for org in client.organizations():
        inner = org.into_inner()
        marker = "*" if inner.id == client.current_organization else " "
        print(f"{marker} {inner.id}  {inner.name}")


def _cmd_datasets(client: Blackfynn, args) -> None:
    for ds in client.datasets():
        inner = ds.into_inner()
        print(f"{inner.id}  {inner.name}")


def _cmd_dataset(client: Blackfynn, args) -> None:
    ds = client.dataset_by_id(args.dataset_id)
    inner = ds.into_inner()
    print(f"{inner.name} ({inner.id})")
    if inner.description:
        print(f"  {inner.description}")
    for child in ds.children or []:
        pkg = child.into_inner()
        kind = pkg.package_type.value if pkg.package_type else "-"
        print(f"  - {pkg.id}  {pkg.name}  [{kind}]")


def _cmd_package(client: Blackfynn, args) -> None:
    pkg = client.package_by_id(args.package_id)
    inner = pkg.into_inner()
    kind = inner.package_type.value if inner.package_type else "-"
    state = inner.state.value if inner.state else "-"
    print(f"{inner.name} ({inner.id})")
    print(f"  type:    {kind}")
    print(f"  state:   {state}")
    print(f"  dataset: {inner.dataset_id}")
    for channel in pkg.channels or []:
        print(f"  channel: {channel.into_inner().name}")


def _print_progress(update: ProgressUpdate) -> None:
    print(f"  {update.file_path.name}: {update.percent_done:.1f}%")


def _cmd_upload(client: Blackfynn, args) -> None:
    paths = [Path(f).resolve() for f in args.files]
    parents = {p.parent for p in paths}
    if len(parents) != 1:
        raise UploadFileError("All files to upload must be in the same directory")
    directory = parents.pop()
    names = [p.name for p in paths]

    preview = client.preview_upload(directory, names, append=args.append)
    credential = client.grant_upload(args.dataset_id)
    uploader = client.s3_uploader(credential.temp_credentials)

    for package in preview:
        print(f"Uploading {package.file_count} file(s) as {package.package_name}")
        for _ in uploader.upload(directory, package.files, package.import_id, credential, _print_progress):
            pass
        manifest = client.complete_upload(
            package.import_id,
            args.dataset_id,
            destination_id=args.destination,
            append=args.append,
        )
        for entry in manifest:
            print(f"  import {entry.import_id}: {len(entry.files)} file(s) queued for processing")


COMMANDS = {
    "whoami": _cmd_whoami,
    "organizations": _cmd_organizations,
    "datasets": _cmd_datasets,
    "dataset": _cmd_dataset,
    "package": _cmd_package,
    "upload": _cmd_upload,
}


def main(argv=None, environ=None) -> int:
    logging.basicConfig(
        level=DEFAULT_LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    environ = os.environ if environ is None else environ
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        client = Blackfynn(_config(args, environ))
        _login(client, args, environ)
        COMMANDS[args.command](client, args)
    except BlackfynnError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
