"""Main entry point for the EduVi CLI."""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

from eduvi import __version__
from eduvi.config import settings
from eduvi.kernel.exporter import validate_export
from eduvi.kernel.materials import list_materials
from eduvi.kernel.storage import DirectoryExportSink, DocumentLoadError, DocumentNotFound, FileDocumentSource
from eduvi.kernel.store import DocumentStore


def print_help():
    """Print help message."""
    print(f"""
EduVi CLI v{__version__}

Usage:
  eduvi [options] <command> [args]

Commands:
  export <document.json>     Export a document to a {settings.FILE_EXTENSION} file
  validate <file>            Check a {settings.FILE_EXTENSION} file against the schema
  materials                  List the material catalog

Options:
  --out DIR                  Export directory (default: {settings.EXPORT_DIR})
  --category NAME            Only list materials in this category
  -h, --help                 Show this help
  -v, --version              Show version

Environment:
  EDUVI_EXPORT_DIR           Default export directory
  EDUVI_SCHEMA_VERSION       Version written into exported files
  EDUVI_LOG_LEVEL            Logging level (default: INFO)

Examples:
  eduvi export lessons/intro.json --out dist/
  eduvi validate dist/intro-to-python-2024-03-01.eduvi
  eduvi materials --category data
""")


def parse_args(args: list[str]) -> dict:
    """
    Parse command line arguments.

    Returns dict with:
        command: str | None (export, validate, materials)
        path: str | None
        out_dir: str | None
        category: str | None
        show_help: bool
        show_version: bool
    """
    result = {
        "command": None,
        "path": None,
        "out_dir": None,
        "category": None,
        "show_help": False,
        "show_version": False,
    }

    i = 0
    while i < len(args):
        arg = args[i]

        if arg in ("export", "validate", "materials") and result["command"] is None:
            result["command"] = arg
        elif arg == "--out":
            if i + 1 < len(args):
                result["out_dir"] = args[i + 1]
                i += 1
            else:
                print("Error: --out requires a directory")
                sys.exit(1)
        elif arg == "--category":
            if i + 1 < len(args):
                result["category"] = args[i + 1]
                i += 1
            else:
                print("Error: --category requires a name")
                sys.exit(1)
        elif arg in ("--help", "-h"):
            result["show_help"] = True
        elif arg in ("--version", "-v"):
            result["show_version"] = True
        elif arg.startswith("-"):
            print(f"Unknown option: {arg}")
            print("Run 'eduvi --help' for usage.")
            sys.exit(1)
        elif result["command"] in ("export", "validate") and result["path"] is None:
            result["path"] = arg
        else:
            print(f"Unknown command: {arg}")
            print("Run 'eduvi --help' for usage.")
            sys.exit(1)

        i += 1

    return result


async def export_document(path: Path, out_dir: Path) -> str:
    """Load <path>, export it, return where the file was written."""
    store = DocumentStore()
    await store.load(FileDocumentSource(path.parent), path.stem)
    sink = DirectoryExportSink(out_dir)
    return await sink.put(store.document.title, store.export_json())


def run_export(args: dict) -> int:
    if not args["path"]:
        print("Error: export requires a document path")
        return 1
    out_dir = Path(args["out_dir"] or settings.EXPORT_DIR)
    try:
        written = asyncio.run(export_document(Path(args["path"]), out_dir))
    except DocumentNotFound as e:
        print(f"Error: document not found: {e}")
        return 1
    except DocumentLoadError as e:
        print(f"Error: {e}")
        return 1
    print(f"Exported {written}")
    return 0


def run_validate(args: dict) -> int:
    if not args["path"]:
        print("Error: validate requires a file path")
        return 1
    path = Path(args["path"])
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        print(f"Error: {path} does not exist")
        return 1
    except UnicodeDecodeError as e:
        print(f"Error: {path} is not UTF-8 text: {e}")
        return 1
    except OSError as e:
        print(f"Error: cannot read {path}: {e}")
        return 1
    except json.JSONDecodeError as e:
        print(f"Error: {path} is not valid JSON: {e}")
        return 1

    valid, errors = validate_export(data)
    if valid:
        print(f"{path}: valid")
        return 0
    print(f"{path}: {len(errors)} error(s)")
    for err in errors:
        print(f"  - {err}")
    return 1


def run_materials(args: dict) -> int:
    materials = list_materials(args["category"])
    if not materials:
        print(f"No materials in category {args['category']}")
        return 1
    for m in materials:
        print(f"  {m.id:<24} {m.category:<12} {m.name}")
    return 0


def main():
    """Main entry point."""
    args = parse_args(sys.argv[1:])

    # Handle help and version first
    if args["show_help"] or (args["command"] is None and not args["show_version"]):
        print_help()
        return

    if args["show_version"]:
        print(f"eduvi {__version__}")
        return

    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")

    if args["command"] == "export":
        sys.exit(run_export(args))
    elif args["command"] == "validate":
        sys.exit(run_validate(args))
    else:
        sys.exit(run_materials(args))


if __name__ == "__main__":
    main()
