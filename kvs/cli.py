import argparse
import logging
import os
import sys

from kvs import __version__
from kvs.engine.store import KvStore
from kvs.models.exceptions import KeyNotFoundError, KvsError

logger = logging.getLogger(__name__)

KEY_NOT_FOUND = "Key not found"


def configure_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def _fsync_interval_ms() -> int:
    raw = os.environ.get("KVS_FSYNC_INTERVAL_MS", "0")
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"KVS_FSYNC_INTERVAL_MS must be an integer, got {raw!r}") from None


def cmd_get(store: KvStore, args: argparse.Namespace) -> int:
    value = store.get(args.key)
    print(KEY_NOT_FOUND if value is None else value)
    return 0


def cmd_set(store: KvStore, args: argparse.Namespace) -> int:
    store.set(args.key, args.value)
    return 0


def cmd_rm(store: KvStore, args: argparse.Namespace) -> int:
    try:
        store.remove(args.key)
    except KeyNotFoundError:
        print(KEY_NOT_FOUND)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kvs",
        description="Log-structured key-value store operating on ./data",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    p_get = sub.add_parser("get", help="Get the value of a key")
    p_get.add_argument("key", metavar="KEY")
    p_get.set_defaults(func=cmd_get)

    p_set = sub.add_parser("set", help="Set the value of a key")
    p_set.add_argument("key", metavar="KEY")
    p_set.add_argument("value", metavar="VALUE")
    p_set.set_defaults(func=cmd_set)

    p_rm = sub.add_parser("rm", help="Remove a key")
    p_rm.add_argument("key", metavar="KEY")
    p_rm.set_defaults(func=cmd_rm)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    try:
        with KvStore.open(os.getcwd(), fsync_interval_ms=_fsync_interval_ms()) as store:
            return args.func(store, args)
    except (KvsError, OSError, ValueError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
