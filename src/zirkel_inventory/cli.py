#!/usr/bin/env python3
"""
Command-line entry point.

Usage:
    zirkel-inventory extract inventario.pdf --output medios.json
    zirkel-inventory extract inventario.pdf --provider IMU --output medios.json
    zirkel-inventory reconcile medios.json --images-dir ./imagenes
    zirkel-inventory lookup ZMIMU101 ZMIMU102
    zirkel-inventory proposal ZMIMU101 ZMIMU102
    zirkel-inventory providers
    zirkel-inventory config
"""

import argparse
import json
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Any, List, Optional

from zirkel_inventory.core import config
from zirkel_inventory.core.context import PipelineContext
from zirkel_inventory.core.errors import ZirkelError
from zirkel_inventory.core.schema import MediaData
from zirkel_inventory.extraction.images import CandidatePolicy
from zirkel_inventory.inventory.lookup import get_medias_by_keys
from zirkel_inventory.inventory.media_images import save_media_image
from zirkel_inventory.inventory.providers import find_provider_code, get_providers
from zirkel_inventory.inventory.reconciler import InventoryReconciler
from zirkel_inventory.pipelines.extract import process_file, save_json_output, to_media_data
from zirkel_inventory.pipelines.proposal import ProposalAssembler

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


# =============================================================================
# Commands
# =============================================================================

def cmd_extract(args: argparse.Namespace) -> int:
    context = PipelineContext.from_env(need_ai=True, need_sheets=bool(args.provider))

    provider = None
    if args.provider:
        # resolve before the model call so a typo fails fast
        providers = get_providers(context.inventory, context.retry_policy)
        code = find_provider_code(providers, args.provider)
        provider = next(p for p in providers if p.clave.strip() == code)

    records = process_file(args.file, context, CandidatePolicy(args.policy), args.mime_type)

    if provider is not None:
        output = [m.to_dict() for m in to_media_data(records, provider)]
    else:
        output = [r.to_dict() for r in records]

    if args.output:
        save_json_output(output, args.output)
    else:
        _print_json(output)
    return 0


def cmd_lookup(args: argparse.Namespace) -> int:
    context = PipelineContext.from_env(need_ai=False, need_sheets=True)
    medias = get_medias_by_keys(context.inventory, args.keys, context.retry_policy)
    _print_json([m.to_dict() for m in medias])
    return 0


def cmd_providers(args: argparse.Namespace) -> int:
    context = PipelineContext.from_env(need_ai=False, need_sheets=True)
    providers = get_providers(context.inventory, context.retry_policy)
    _print_json([p.to_dict() for p in providers])
    return 0


def load_media_list(path: str) -> List[MediaData]:
    """
    Read upsert-ready records from a JSON file.

    Accepts a list, or an object with the list under ``mediaDataList``.

    Raises:
        ValueError: If the file is not a list of record objects
    """
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    if isinstance(payload, dict):
        payload = payload.get("mediaDataList")
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise ValueError(f"{path} must contain a JSON list of media records")
    return [MediaData.from_dict(item) for item in payload]


def store_companion_images(images_dir: str, records: List[MediaData], target_dir: str) -> int:
    """Copy ``<key>.<ext>`` files whose key is in the batch into the images path."""
    keys = {r.clave_zirkel for r in records if r.clave_zirkel}
    saved = 0
    for path in sorted(Path(images_dir).iterdir()):
        if not path.is_file() or path.stem not in keys:
            continue
        mime_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
        save_media_image(target_dir, path.stem, path.read_bytes(), mime_type)
        saved += 1
    return saved


def cmd_reconcile(args: argparse.Namespace) -> int:
    records = load_media_list(args.file)
    context = PipelineContext.from_env(need_ai=False, need_sheets=True)

    if args.images_dir:
        saved = store_companion_images(args.images_dir, records, config.IMAGES_PATH)
        logger.info(f"Stored {saved} companion image(s) in {config.IMAGES_PATH}")

    summary = InventoryReconciler(context.inventory, context.retry_policy).reconcile(records)
    _print_json({"message": "Datos de medios actualizados correctamente", **summary.to_dict()})
    return 0


def cmd_proposal(args: argparse.Namespace) -> int:
    context = PipelineContext.from_env(need_ai=False, need_sheets=True, need_slides=True)
    assembler = ProposalAssembler(context.decks, context.inventory, context.retry_policy)
    result = assembler.build_proposal(args.keys)
    _print_json({"message": "Propuesta creada exitosamente", **result.to_dict()})
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    print(config.get_config_summary())
    return 0


# =============================================================================
# Entry Point
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zirkel-inventory",
        description="Media inventory extraction, reconciliation and proposals",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  ANTHROPIC_API_KEY               Anthropic API key (extract)
  GOOGLE_CLIENT_ID                Google OAuth client ID
  GOOGLE_CLIENT_SECRET            Google OAuth client secret
  GOOGLE_REFRESH_TOKEN            Google OAuth refresh token
  GOOGLE_SHEETS_ID                Inventory spreadsheet ID
  GOOGLE_SLIDES_PROPOSAL_TEMPLATE Proposal template presentation ID
  GOOGLE_DRIVE_PROPOSAL_FOLDER    Folder for generated proposals
  IMAGES_PATH                     Local directory for companion images
        """,
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser("extract", help="Extract media records from a PDF, XLSX or CSV file")
    extract.add_argument("file", help="Document to process")
    extract.add_argument(
        "--policy",
        choices=[p.value for p in CandidatePolicy],
        default=CandidatePolicy.ALL.value,
        help="Candidate images per page: all (AI ranking) or largest (default: all)",
    )
    extract.add_argument("--mime-type", help="Override the MIME type guessed from the file name")
    extract.add_argument("--provider", help="Provider name or code; outputs upsert-ready records with ZirkelKeys")
    extract.add_argument("--output", "-o", help="Write JSON here instead of stdout")
    extract.set_defaults(func=cmd_extract)

    lookup = subparsers.add_parser("lookup", help="Fetch inventory items by ZirkelKey")
    lookup.add_argument("keys", nargs="+", help="ZirkelKeys")
    lookup.set_defaults(func=cmd_lookup)

    providers = subparsers.add_parser("providers", help="List providers")
    providers.set_defaults(func=cmd_providers)

    reconcile = subparsers.add_parser("reconcile", help="Upsert media records into the inventory")
    reconcile.add_argument("file", help="JSON list of media records")
    reconcile.add_argument("--images-dir", help="Directory of <ZirkelKey>.<ext> companion images")
    reconcile.set_defaults(func=cmd_reconcile)

    proposal = subparsers.add_parser("proposal", help="Create a proposal deck")
    proposal.add_argument("keys", nargs="+", help="ZirkelKeys to include")
    proposal.set_defaults(func=cmd_proposal)

    show_config = subparsers.add_parser("config", help="Show the configuration (secrets masked)")
    show_config.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        return args.func(args)
    except ZirkelError as e:
        logger.error(f"{type(e).__name__}: {e.message}", exc_info=args.verbose)
        print(f"Error: processing error [{e.code.value}]", file=sys.stderr)
        return 1
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
