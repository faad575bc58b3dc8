"""Portal commands: search, document, download, recent."""

from pathlib import Path

from budstandart.cli._shared import fail, print_json, write_json

DEFAULT_LIMIT = 20


def register(subparsers):
    """Register portal commands."""
    p = subparsers.add_parser("search", help="Search the document catalog")
    p.add_argument("query", type=str, help="Search terms, e.g. 'ДБН В.2.6'")
    _add_portal_options(p)
    p.set_defaults(func=cmd_search)

    p = subparsers.add_parser("document", help="Show a document's metadata")
    p.add_argument("id_doc", type=str, help="Document id")
    _add_portal_options(p)
    p.set_defaults(func=cmd_document)

    p = subparsers.add_parser("download", help="Download a document as PDF (or HTML)")
    p.add_argument("id_doc", type=str, help="Document id")
    _add_portal_options(p)
    p.set_defaults(func=cmd_download)

    p = subparsers.add_parser("recent", help="List recently published documents")
    _add_portal_options(p)
    p.set_defaults(func=cmd_recent)


def _add_portal_options(p):
    p.add_argument(
        "--limit", type=int, default=DEFAULT_LIMIT, help="Max listing results (default: 20)"
    )
    p.add_argument(
        "--output",
        type=str,
        default=None,
        help="download: exact file path (default: title-derived name); "
        "other commands: also save the JSON result there",
    )
    p.add_argument("--email", type=str, default=None, help="Login (default: $BUDSTANDART_EMAIL)")
    p.add_argument(
        "--password", type=str, default=None, help="Password (default: $BUDSTANDART_PASSWORD)"
    )
    p.add_argument(
        "--cdp-url",
        type=str,
        default=None,
        help="Chrome remote debugging URL (default: http://localhost:9222)",
    )


# --- Command handlers ---


def _orchestrator(args):
    from budstandart.acquire.pipeline import AcquisitionOrchestrator
    from budstandart.config import load_portal_config, resolve_credentials

    config = load_portal_config(cdp_url=args.cdp_url)
    credentials = resolve_credentials(args.email, args.password)
    return AcquisitionOrchestrator(config, credentials)


def _emit(args, data) -> None:
    if args.output:
        write_json(Path(args.output), data)
    print_json(data)


def cmd_search(args):
    """Search documents and print references as JSON."""
    from budstandart.errors import BudstandartError

    try:
        results = _orchestrator(args).search(args.query, limit=args.limit)
        _emit(args, [r.to_dict() for r in results])
    except (BudstandartError, OSError) as e:
        fail(e)


def cmd_document(args):
    """Print one document's detail as JSON."""
    from budstandart.errors import BudstandartError

    try:
        detail = _orchestrator(args).document(args.id_doc)
        _emit(args, detail.to_dict())
    except (BudstandartError, OSError) as e:
        fail(e)


def cmd_download(args):
    """Download one document and print where it went."""
    from budstandart.errors import BudstandartError

    output = Path(args.output) if args.output else None
    try:
        result = _orchestrator(args).download(args.id_doc, output=output)
    except (BudstandartError, OSError) as e:
        fail(e)
    print_json(result.to_dict())


def cmd_recent(args):
    """List recent documents as JSON."""
    from budstandart.errors import BudstandartError

    try:
        results = _orchestrator(args).recent(limit=args.limit)
        _emit(args, [r.to_dict() for r in results])
    except (BudstandartError, OSError) as e:
        fail(e)
