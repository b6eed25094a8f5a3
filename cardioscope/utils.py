import math
import re
from pathlib import Path
from collections import namedtuple
from typing import Iterable, Union
import numpy as np
from cardioscope.config import ACCEPTED_SOURCES


NamedSignal = namedtuple("NamedSignal", "name value")

# Longest leading decimal literal, e.g. "0.12" in "0.12 mV".
NUMBER_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def valid_source(file_name: str) -> bool:
    """Make sure that the recording stems from one of the accepted databases.

    Provenance is only checked lexically on the file name (case-insensitive).
    """
    name = Path(file_name).name.lower()
    return any(source in name for source in ACCEPTED_SOURCES)


def parse_sample(line: str) -> Union[float, None]:
    """Return the number that the first comma-separated field of `line`
    starts with, or None if it doesn't start with a finite number.

    Trailing text after the number is ignored ("0.12 mV" reads as 0.12).
    """
    match = NUMBER_PREFIX.match(line.split(",", 1)[0].lstrip())
    if match is None:
        return None
    value = float(match.group())
    if not math.isfinite(value):
        return None

    return value


def parse_samples(lines: Union[str, Iterable[str]]) -> np.ndarray:
    """Parse newline-delimited text into a read-only array of samples.

    Lines that can't be parsed (headers, blanks, annotations) are dropped.
    """
    if isinstance(lines, str):
        lines = lines.splitlines()
    samples = np.array(
        [s for s in map(parse_sample, lines) if s is not None], dtype=np.float64
    )
    samples.flags.writeable = False

    return samples


def read_samples(path: Union[str, Path]) -> np.ndarray:
    with open(path, encoding="utf-8", errors="replace") as f:
        return parse_samples(f)
