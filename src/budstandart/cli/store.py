"""File-search store commands: store {create, upload, list, files, search, delete}."""

import os
from pathlib import Path

from budstandart.cli._shared import fail, print_json


def register(subparsers):
    """Register the store command group."""
    store_parser = subparsers.add_parser(
        "store", help="Upload downloaded documents to Gemini and ask questions about them"
    )
    store_subparsers = store_parser.add_subparsers(dest="store_command", help="Store subcommands")

    p = store_subparsers.add_parser("create", help="Create a store (no-op if it exists)")
    p.add_argument("name", type=str)

    p = store_subparsers.add_parser("upload", help="Upload a PDF/HTML file to a store")
    p.add_argument("path", type=str)
    p.add_argument("--store", type=str, required=True, help="Store name")
    p.add_argument("--display-name", type=str, default=None, help="Default: file name")

    store_subparsers.add_parser("list", help="List stores")

    p = store_subparsers.add_parser("files", help="List files in a store")
    p.add_argument("--store", type=str, required=True, help="Store name")

    p = store_subparsers.add_parser("search", help="Ask a question over a store's files")
    p.add_argument("query", type=str)
    p.add_argument("--store", type=str, required=True, help="Store name")

    p = store_subparsers.add_parser("delete", help="Delete a store and its uploaded files")
    p.add_argument("name", type=str)
    p.add_argument(
        "--keep-files", action="store_true", help="Only forget the store, keep remote files"
    )

    store_parser.set_defaults(func=cmd_store)


def cmd_store(args):
    """Dispatch store subcommands."""
    handlers = {
        "create": cmd_store_create,
        "upload": cmd_store_upload,
        "list": cmd_store_list,
        "files": cmd_store_files,
        "search": cmd_store_search,
        "delete": cmd_store_delete,
    }
    handler = handlers.get(args.store_command)
    if handler is None:
        print("Usage: budstandart store {create|upload|list|files|search|delete}")
        return
    handler(args)


def _store(needs_api: bool = True):
    """Build a FileSearchStore; the API key is only checked when the API is used."""
    from budstandart.config import load_portal_config
    from budstandart.errors import ConfigurationError
    from budstandart.store.file_search import DEFAULT_MODEL, FileSearchStore
    from budstandart.store.manifest import StoreManifest

    manifest = StoreManifest(load_portal_config().manifest_path)
    model = os.getenv("GEMINI_MODEL", DEFAULT_MODEL)
    if not needs_api:
        return FileSearchStore(None, manifest, model)

    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        raise ConfigurationError("GEMINI_API_KEY not set. Add it to your environment or .env file.")
    return FileSearchStore.from_api_key(api_key, manifest, model)


def cmd_store_create(args):
    from budstandart.errors import BudstandartError

    try:
        print_json(_store(needs_api=False).create_store(args.name))
    except BudstandartError as e:
        fail(e)


def cmd_store_upload(args):
    from budstandart.errors import BudstandartError

    try:
        record = _store().upload_file(Path(args.path), args.store, args.display_name)
    except (BudstandartError, FileNotFoundError) as e:
        fail(e)
    print_json(record.to_dict())


def cmd_store_list(args):
    from budstandart.errors import BudstandartError

    try:
        print_json([s.to_dict() for s in _store(needs_api=False).list_stores()])
    except BudstandartError as e:
        fail(e)


def cmd_store_files(args):
    from budstandart.errors import BudstandartError

    try:
        print_json(_store(needs_api=False).list_files(args.store))
    except BudstandartError as e:
        fail(e)


def cmd_store_search(args):
    from budstandart.errors import BudstandartError

    try:
        answer = _store().search(args.query, args.store)
    except BudstandartError as e:
        fail(e)
    print_json(answer.to_dict())


def cmd_store_delete(args):
    from budstandart.errors import BudstandartError

    try:
        store = _store(needs_api=not args.keep_files)
        leftovers = store.delete_store(args.name, delete_files=not args.keep_files)
    except BudstandartError as e:
        fail(e)
    print_json({"deleted": args.name, "remoteFilesNotDeleted": leftovers})
