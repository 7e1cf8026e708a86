"""Reading and writing of event samples."""

from cres.io.reader import EventReader, EventReadError
from cres.io.writer import EventWriter
from cres.io.jsonl import JSONLinesReader, JSONLinesWriter
