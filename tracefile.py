# tracefile.py
import logging
import re
from collections import namedtuple
from contextlib import contextmanager
from enum import Enum

from errors import ResourceError, TraceFormatError

logger = logging.getLogger(__name__)

# "S ffffffffffffffff,4096" is 23 characters; the newline is not counted.
MAX_RECORD_WIDTH = 23
ADDRESS_LIMIT = 1 << 64

_HEX = re.compile(r"[0-9a-fA-F]+")
_DEC = re.compile(r"[0-9]+")


class Operation(Enum):
    LOAD = "L"
    STORE = "S"


AccessRecord = namedtuple("AccessRecord", "op address size")


def format_record(record):
    return f"{record.op.value} {record.address:x},{record.size}"


def parse_line(line, line_number=None):
    """
    Parse one "<op> <hex-address>,<decimal-size>" line into an AccessRecord.
    Raises TraceFormatError naming the first check that fails.
    """
    body = line[:-1] if line.endswith("\n") else line
    if len(body) > MAX_RECORD_WIDTH:
        raise TraceFormatError(f"line longer than {MAX_RECORD_WIDTH} characters", line_number, line)

    op = body[:1]
    addr, comma, rest = body[2:].partition(",")
    fields = rest.split()
    if not op or body[1:2] != " " or not addr or not comma or not fields:
        raise TraceFormatError("missing element in access record", line_number, line)
    if len(fields) > 1:
        raise TraceFormatError(f"unexpected junk after size: {fields[1]!r}", line_number, line)
    size = fields[0]

    if op not in ("L", "S"):
        raise TraceFormatError(f"invalid operation {op!r}", line_number, line)
    if not _HEX.fullmatch(addr):
        raise TraceFormatError(f"invalid hexadecimal address {addr!r}", line_number, line)
    address = int(addr, 16)
    if address >= ADDRESS_LIMIT:
        raise TraceFormatError(f"address {addr} does not fit in 64 bits", line_number, line)
    if not _DEC.fullmatch(size):
        raise TraceFormatError(f"invalid decimal size {size!r}", line_number, line)

    return AccessRecord(Operation(op), address, int(size))


def read_trace(stream):
    """Lazily yield one AccessRecord per line of an opened text stream."""
    for line_number, line in enumerate(stream, start=1):
        yield parse_line(line, line_number)


@contextmanager
def open_trace(path):
    """
    Open a trace file and yield its record generator.
    The file is closed when the block exits, including on errors.
    """
    try:
        stream = open(path, "r", encoding="ascii", errors="replace", newline="\n")
    except OSError as exc:
        raise ResourceError(f"error opening trace file {path}: {exc.strerror or exc}") from exc
    logger.info("reading trace %s", path)
    with stream:
        yield read_trace(stream)
