__version__ = "0.1.0"

import sys
import logging
import argparse

from pprint import pformat
from typing import Optional, Sequence

from tqdm import tqdm  # type: ignore[import]

from strictbencode.errors import *  # noqa: F401,F403
from strictbencode.cursor import ByteCursor
from strictbencode.variants import Shape, VariantSet, variant
from strictbencode.encoder import (BencodeEncoder,
                                   dumps,
                                   encode,
                                   encode_sequence)
from strictbencode.decoder import (DEFAULT_INT_BITS,
                                   DEFAULT_MAX_DEPTH,
                                   BencodeDecoder,
                                   decode,
                                   decode_as,
                                   loads)
from strictbencode.values import (ByteString,
                                  Dictionary,
                                  Integer,
                                  List,
                                  Value,
                                  to_value)


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"
PROGRESS_FMT = "{l_bar}{bar} [{elapsed}<{remaining}]"
PRINT_DEPTH = 32

STDIN_NAME = "<stdin>"


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="strictbencode",
        description="Decode and inspect bencoded files.")
    parser.add_argument("-f", "--file", type=str, action="append",
                        dest="files", default=[])
    parser.add_argument("-p", "--progress", action="store_true")
    parser.add_argument("--permissive", action="store_true",
                        help="accept dictionaries with unordered keys")
    parser.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH)
    parser.add_argument("--check", action="store_true",
                        help="fail on input that is not in canonical form")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def _read_input(path: str) -> bytes:
    if path == STDIN_NAME:
        return sys.stdin.buffer.read()
    with open(path, "rb") as fin:
        return fin.read()


def inspect_file(
    path: str,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    strict: bool = True,
    check: bool = False
) -> bool:
    try:
        data = _read_input(path)
    except OSError as err:
        logger.error("%s: %s", path, err)
        return False

    try:
        value = decode(data, max_depth=max_depth, strict=strict)
        canonical = encode(value, max_depth=max_depth)
    except BencodeError as err:  # noqa: F405
        logger.error("%s: %s", path, err)
        return False

    print(f"{path}:")
    print(pformat(value.to_python(), depth=PRINT_DEPTH))

    if check and canonical != data:
        logger.error("%s: input is not in canonical form", path)
        return False
    return True


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )

    paths = args.files or [STDIN_NAME]
    if args.progress:
        paths = tqdm(paths, bar_format=PROGRESS_FMT)

    results = [
        inspect_file(path,
                     max_depth=args.max_depth,
                     strict=not args.permissive,
                     check=args.check)
        for path in paths
    ]
    return 0 if all(results) else 1
