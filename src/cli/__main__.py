#!/usr/bin/env python3
"""Main CLI entry point for all commands."""

import argparse
import sys


def main():
    """Main CLI dispatcher."""
    parser = argparse.ArgumentParser(
        description="lenslink CLI - detect faces/objects and search the web for them",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True
    )

    # Detect command
    detect_parser = subparsers.add_parser(
        "detect",
        help="Detect faces and/or objects in an image"
    )
    detect_parser.add_argument(
        "image",
        help="Image URL, data URI or local file"
    )
    detect_parser.add_argument(
        "--mode",
        choices=["faces", "objects", "both"],
        help="Detection mode (default: DETECTION_MODE setting)"
    )
    detect_parser.add_argument(
        "--user-id",
        help="Actor whose entry counter is bumped when faces are found"
    )

    # Search command
    search_parser = subparsers.add_parser(
        "search",
        help="Search the web for a detected face or object"
    )
    search_parser.add_argument(
        "image",
        help="Image URL, data URI or local file"
    )
    search_parser.add_argument(
        "--type",
        dest="box_type",
        choices=["face", "object"],
        required=True,
        help="Kind of box to search for"
    )
    search_parser.add_argument(
        "--index",
        type=int,
        default=0,
        help="Index of the box within its kind (default: 0)"
    )
    search_parser.add_argument(
        "--mode",
        choices=["faces", "objects", "both"],
        help="Detection mode used to find the boxes"
    )
    search_parser.add_argument(
        "--search-mode",
        choices=["crop", "full"],
        help="Crop the box before searching or search the full image"
    )

    # Serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the detection/search gateway"
    )
    serve_parser.add_argument("--host", help="Bind address")
    serve_parser.add_argument("--port", type=int, help="Bind port")

    args = parser.parse_args()

    # Route to appropriate command
    if args.command == "detect":
        from .detect import main as detect_main
        detect_main(args.image, mode=args.mode, user_id=args.user_id)
    elif args.command == "search":
        from .search import main as search_main
        search_main(
            args.image,
            args.box_type,
            args.index,
            mode=args.mode,
            search_mode=args.search_mode,
        )
    elif args.command == "serve":
        from ..gateway.app.main import run
        run(host=args.host, port=args.port)
    else:
        parser.print_help()
        sys.exit(1)


# When run as python -m src.cli, this file is executed directly
if __name__ == "__main__":
    main()
