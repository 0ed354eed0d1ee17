"""
SegmentDiscovery - Locate segment files in a data directory.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

SEGMENT_SUFFIX = ".log"
SEGMENT_PATTERN = re.compile(r"^(\d+)\.log$")

# Zero padding keeps lexicographic and numeric order identical
SEGMENT_ID_WIDTH = 20


def segment_filename(segment_id: int) -> str:
    return f"{segment_id:0{SEGMENT_ID_WIDTH}d}{SEGMENT_SUFFIX}"


@dataclass(frozen=True)
class SegmentDescriptor:
    """A segment file on disk, identified by its numeric id."""

    segment_id: int
    path: str

    @property
    def filename(self) -> str:
        return os.path.basename(self.path)


class SegmentDiscovery:
    """
    Enumerates the segments of a data directory.

    Responsibilities:
    - Create the data directory if it does not exist
    - List segment files in replay order (ascending id)
    - Pick the active segment, creating a fresh one if there is none
    """

    def __init__(self, data_dir: str) -> None:
        """
        Args:
            data_dir: Directory holding the segment files.
        """
        self.data_dir = data_dir

    def discover(self) -> list[SegmentDescriptor]:
        """
        List existing segments sorted by id.

        Returns:
            Segment descriptors in replay order; empty if the directory
            was just created.
        """
        if not os.path.isdir(self.data_dir):
            Path(self.data_dir).mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory {self.data_dir}")
            return []

        segments = []
        for filename in os.listdir(self.data_dir):
            path = os.path.join(self.data_dir, filename)
            if not os.path.isfile(path):
                continue

            match = SEGMENT_PATTERN.match(filename)
            if not match:
                logger.warning(f"Ignoring unrecognized file in data directory: {filename}")
                continue

            segments.append(SegmentDescriptor(segment_id=int(match.group(1)), path=path))

        segments.sort(key=lambda s: s.segment_id)
        for previous, current in zip(segments, segments[1:]):
            if previous.segment_id == current.segment_id:
                raise ValueError(
                    f"Duplicate segment id {current.segment_id}: "
                    f"{previous.filename} and {current.filename}"
                )
        return segments

    def active(self, segments: list[SegmentDescriptor]) -> SegmentDescriptor:
        """
        Choose the segment new records are appended to.

        Args:
            segments: Output of discover().

        Returns:
            The last segment, or a newly created one if there are none.
        """
        if segments:
            return segments[-1]
        return self.new_segment(0)

    def new_segment(self, after_id: int) -> SegmentDescriptor:
        """
        Create an empty segment file with an id greater than ``after_id``.

        Raises:
            FileExistsError: If the file already exists.
        """
        segment_id = after_id + 1
        path = os.path.join(self.data_dir, segment_filename(segment_id))

        # Exclusive create: never reuse an existing segment
        with open(path, "xb"):
            pass

        logger.info(f"Created segment {segment_id} at {path}")
        return SegmentDescriptor(segment_id=segment_id, path=path)
