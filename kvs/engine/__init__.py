from kvs.engine.discovery import SegmentDescriptor, SegmentDiscovery
from kvs.engine.replayer import IndexReplayer
from kvs.engine.store import KvStore

__all__ = ["IndexReplayer", "KvStore", "SegmentDescriptor", "SegmentDiscovery"]
