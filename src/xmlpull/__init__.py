from .entities import ReferenceDecodeError, decode_references
from .generator import Generator, GeneratorError, TagGenerator
from .serialize import iter_test_format, to_test_format
from .stream import stream
from .tokenizer import EntityIterator, IteratorOpts
from .tokens import Entity, EntityType, ErrorCode, ParseError, XMLSyntaxError

__all__ = [
    "Entity",
    "EntityIterator",
    "EntityType",
    "ErrorCode",
    "Generator",
    "GeneratorError",
    "IteratorOpts",
    "ParseError",
    "ReferenceDecodeError",
    "TagGenerator",
    "XMLSyntaxError",
    "decode_references",
    "iter_test_format",
    "stream",
    "to_test_format",
]
