# apollo/dsl/loader.py
"""
Config loader: schema.yaml -> fully decoded, hydrated Schema.

Loading runs as a fixed sequence of steps and aborts on the first error;
no partially decoded schema is ever returned.
"""

import time
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from ..contracts import ABILoader
from ..core.config import SCHEMA_FILE
from ..core.errors import ReadError, SchemaSyntaxError, DecodeError
from ..core.logging import LoggingMixin
from ..expressions import compile_node, initial_context
from ..expressions.context import Clock
from .decoder import decode_schema_header, decode_top_level
from .hydrator import InterfaceHydrator
from .loop import LoopExpander
from .schema import Schema, QuerySchema


class UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that rejects a repeated mapping key instead of keeping the last value"""

    def construct_mapping(self, node, deep=False):
        if isinstance(node, yaml.MappingNode):
            seen = set()
            for key_node, _ in node.value:
                if key_node.tag == "tag:yaml.org,2002:merge":
                    continue
                key = self.construct_object(key_node, deep=deep)
                try:
                    duplicate = key in seen
                except TypeError:
                    continue
                if duplicate:
                    raise yaml.constructor.ConstructorError(
                        "while constructing a mapping", node.start_mark,
                        f"found duplicate key {key!r}", key_node.start_mark)
                seen.add(key)
        return super().construct_mapping(node, deep=deep)


def parse_document(text: str, filename: str = SCHEMA_FILE) -> Dict[str, Any]:
    """Parse schema text into a compiled document (expressions parsed, not evaluated)"""
    try:
        document = yaml.load(text, Loader=UniqueKeyLoader)
    except yaml.YAMLError as e:
        raise SchemaSyntaxError(f"malformed schema document: {e}", path=filename) from e

    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise SchemaSyntaxError("schema document must be a mapping at the top level", path=filename)

    try:
        return compile_node(document)
    except SchemaSyntaxError as e:
        raise SchemaSyntaxError(e.message, **{**e.context, "path": filename}) from e


class SchemaLoader(LoggingMixin):
    def __init__(self,
                 conf_dir: Union[str, Path],
                 clock: Clock = time.time,
                 schema_file: str = SCHEMA_FILE):
        self.conf_dir = Path(conf_dir)
        self.clock = clock
        self.schema_path = self.conf_dir / schema_file
        self.abi_loader = ABILoader(self.conf_dir)
        self.loop_expander = LoopExpander()
        self.hydrator = InterfaceHydrator(self.abi_loader)

    def load(self) -> Schema:
        text = self._read()
        document = parse_document(text, str(self.schema_path))

        ctx = initial_context(self.clock)
        schema = decode_schema_header(document, ctx)

        # Enriched context: builtins, now and the schema variables
        ctx.update(schema.variables)
        schema.context = ctx

        queries, loop = decode_top_level(schema.remainder, ctx)
        for query in queries:
            query.context = ctx.child()

        if loop is not None:
            queries.extend(self.loop_expander.expand(loop.template, loop.items))

        self._check_unique(queries)
        self.hydrator.hydrate(queries)
        schema.queries = queries

        abi_stats = self.abi_loader.get_cache_stats()
        self.log_info(f"Schema loaded with {abi_stats['total_entries']} interface descriptors",
                      path=str(self.schema_path),
                      query_name=",".join(q.name for q in queries))
        return schema

    def _read(self) -> str:
        try:
            return self.schema_path.read_text(encoding="utf-8")
        except OSError as e:
            self.log_error("Schema could not be read", path=str(self.schema_path), error=str(e))
            raise ReadError(f"reading schema: {e}", path=str(self.schema_path)) from e

    @staticmethod
    def _check_unique(queries: List[QuerySchema]) -> None:
        seen = set()
        for query in queries:
            if query.name in seen:
                raise DecodeError(f"duplicate query name '{query.name}'", query_name=query.name)
            seen.add(query.name)


def load_schema(conf_dir: Union[str, Path], clock: Clock = time.time) -> Schema:
    return SchemaLoader(conf_dir, clock=clock).load()
