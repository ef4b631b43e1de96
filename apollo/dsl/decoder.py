# apollo/dsl/decoder.py
"""
Structural decoding of a compiled schema document.

Attributes are evaluated against the context in effect for their scope;
transform, save and filter bodies are kept compiled for the runtime.
Decoded attribute dicts are validated into Structs with ``msgspec.convert``.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

import msgspec
from eth_utils import is_address

from ..core.errors import DecodeError
from ..core.logging import ApolloLogger, log_with_context, DEBUG
from ..expressions import EvalContext, Expression, ValueKind, evaluate_node, decode_body, parse_string
from .schema import Schema, QuerySchema, LoopSchema


logger = ApolloLogger.get_logger('dsl.decoder')

WINDOW_ATTRIBUTES = ("start_time", "end_time", "time_interval",
                     "start_block", "end_block", "block_interval")

SCHEMA_KEYS = WINDOW_ATTRIBUTES + ("variables", "loop", "query")
LOOP_KEYS = ("items", "query")
QUERY_KEYS = WINDOW_ATTRIBUTES + ("chain", "contract", "event", "save", "filter")
CONTRACT_KEYS = ("address", "abi", "method", "event", "transform")
METHOD_KEYS = ("block_offset", "inputs", "outputs")
EVENT_KEYS = ("abi", "outputs", "method", "transform")


def decode_schema_header(document: Dict[str, Any], ctx: EvalContext) -> Schema:
    """Decode window attributes and variables; keep loop/query blocks undecoded"""
    _check_keys(document, SCHEMA_KEYS, "schema")

    data = _attributes(document, WINDOW_ATTRIBUTES, ctx, "schema")
    schema = _convert(data, Schema, "schema")

    variables = document.get("variables")
    if variables is not None:
        if not isinstance(variables, dict):
            raise DecodeError("variables must be a mapping of name to expression")
        schema.variables = decode_body(variables, ctx)

    schema.remainder = {k: document[k] for k in ("loop", "query") if k in document}
    return schema


def decode_top_level(remainder: Dict[str, Any], ctx: EvalContext) -> Tuple[List[QuerySchema], Optional[LoopSchema]]:
    queries = decode_queries(remainder.get("query"), ctx)

    loop = None
    loop_node = remainder.get("loop")
    if loop_node is not None:
        loop = decode_loop(loop_node, ctx)

    return queries, loop


def decode_loop(node: Any, ctx: EvalContext) -> LoopSchema:
    block = _block(node, "loop")
    _check_keys(block, LOOP_KEYS, "loop")
    if "items" not in block:
        raise DecodeError("loop is missing required attribute items")

    items = evaluate_node(block["items"], ctx)
    if items.kind != ValueKind.LIST:
        raise DecodeError(f"loop items must be a list, got {items.kind.value}")

    return LoopSchema(items=list(items.raw), template=block.get("query"))


def decode_queries(node: Any, ctx: EvalContext) -> List[QuerySchema]:
    queries = []
    for label, body in _labeled_blocks(node, "query"):
        name = _label(label, ctx)
        queries.append(decode_query(name, body, ctx))
    return queries


def decode_query(name: str, node: Any, ctx: EvalContext) -> QuerySchema:
    where = f"query {name}"
    body = _block(node, where)
    _check_keys(body, QUERY_KEYS, where)

    if "save" not in body:
        raise DecodeError(f"{where} is missing required block save", query_name=name)

    data = _attributes(body, ("chain",) + WINDOW_ATTRIBUTES, ctx, where)
    data["name"] = name
    data["contract"] = [
        _decode_contract(contract, ctx, f"{where} contract[{i}]")
        for i, contract in enumerate(_block_list(body.get("contract"), f"{where} contract"))
    ]
    data["event"] = [
        _decode_event(event_name, event, ctx, f"{where} event {event_name}", global_event=True)
        for event_name, event in _labeled_blocks(body.get("event"), f"{where} event")
    ]
    data["save"] = {"body": _deferred_mapping(body.get("save"), f"{where} save")}
    if body.get("filter") is not None:
        data["filter"] = {"body": _deferred_filter(body["filter"], where)}

    query = _convert(data, QuerySchema, where, query_name=name)
    log_with_context(logger, DEBUG, "Query decoded",
                     query_name=name, chain=str(query.chain))
    return query


def _decode_contract(node: Any, ctx: EvalContext, where: str) -> Dict[str, Any]:
    body = _block(node, where)
    _check_keys(body, CONTRACT_KEYS, where)
    for required in ("address", "abi"):
        if required not in body:
            raise DecodeError(f"{where} is missing required attribute {required}")

    data = _attributes(body, ("address", "abi"), ctx, where)
    if isinstance(data["address"], int) and not isinstance(data["address"], bool):
        # unquoted hex in YAML arrives as an int
        data["address"] = "0x%040x" % data["address"]
    if not isinstance(data["address"], str) or not is_address(data["address"]):
        raise DecodeError(f"{where} has an invalid address {data['address']!r}")

    data["method"] = [
        _decode_method(method_name, method, ctx, f"{where} method {method_name}")
        for method_name, method in _labeled_blocks(body.get("method"), f"{where} method")
    ]
    data["event"] = [
        _decode_event(event_name, event, ctx, f"{where} event {event_name}")
        for event_name, event in _labeled_blocks(body.get("event"), f"{where} event")
    ]
    if body.get("transform") is not None:
        data["transform"] = {"body": _deferred_mapping(body["transform"], f"{where} transform")}
    return data


def _decode_method(name: str, node: Any, ctx: EvalContext, where: str) -> Dict[str, Any]:
    body = _block(node, where)
    _check_keys(body, METHOD_KEYS, where)
    data = _attributes(body, ("block_offset", "outputs"), ctx, where)
    data["name"] = name
    if body.get("inputs") is not None:
        inputs = evaluate_node(body["inputs"], ctx)
        if inputs.kind != ValueKind.MAP:
            raise DecodeError(f"{where} inputs must be a mapping of argument name to value")
        data["inputs"] = {k: v.to_display() for k, v in inputs.raw.items()}
    return data


def _decode_event(name: str, node: Any, ctx: EvalContext, where: str,
                  global_event: bool = False) -> Dict[str, Any]:
    body = _block(node, where)
    _check_keys(body, EVENT_KEYS, where)
    if global_event and "abi" not in body:
        raise DecodeError(f"{where} is a global event and needs an abi")

    data = _attributes(body, ("abi", "outputs"), ctx, where)
    data["name"] = name
    data["method"] = [
        _decode_method(method_name, method, ctx, f"{where} method {method_name}")
        for method_name, method in _labeled_blocks(body.get("method"), f"{where} method")
    ]
    if body.get("transform") is not None:
        data["transform"] = {"body": _deferred_mapping(body["transform"], f"{where} transform")}
    return data


# === helpers ===

def _attributes(body: Dict[str, Any], names: Iterable[str], ctx: EvalContext, where: str) -> Dict[str, Any]:
    data = {}
    for name in names:
        if name in body and body[name] is not None:
            try:
                data[name] = evaluate_node(body[name], ctx).as_python()
            except DecodeError as e:
                raise DecodeError(f"{where} {name}: {e.message}", **e.context) from e
    return data


def _convert(data: Dict[str, Any], struct_type, where: str, **context):
    try:
        return msgspec.convert(data, type=struct_type)
    except msgspec.ValidationError as e:
        raise DecodeError(f"{where}: {e}", **context) from e


def _check_keys(body: Dict[str, Any], allowed: Tuple[str, ...], where: str) -> None:
    for key in body:
        if key not in allowed:
            raise DecodeError(f"unsupported argument '{key}' in {where}")


def _block(node: Any, where: str) -> Dict[str, Any]:
    if node is None:
        return {}
    if not isinstance(node, dict):
        raise DecodeError(f"{where} must be a block (mapping)")
    return node


def _block_list(node: Any, where: str) -> List[Any]:
    if node is None:
        return []
    if isinstance(node, dict):
        return [node]
    if isinstance(node, list):
        return node
    raise DecodeError(f"{where} must be a block or a list of blocks")


def _labeled_blocks(node: Any, where: str) -> List[Tuple[str, Any]]:
    if node is None:
        return []
    if isinstance(node, dict):
        return list(node.items())
    # list form repeats a label, e.g. the same method called with different inputs
    if isinstance(node, list) and all(isinstance(entry, dict) for entry in node):
        return [item for entry in node for item in entry.items()]
    raise DecodeError(f"{where} must be a mapping of label to block")


def _label(label: str, ctx: EvalContext) -> str:
    value = parse_string(label).evaluate(ctx)
    if value.kind != ValueKind.STRING or not value.raw:
        raise DecodeError(f"block label {label!r} must evaluate to a non-empty string")
    return value.raw


def _deferred_mapping(node: Any, where: str) -> Dict[str, Any]:
    if node is None:
        return {}
    if not isinstance(node, dict):
        raise DecodeError(f"{where} must be a mapping of name to expression")
    return node


def _deferred_filter(node: Any, where: str) -> Any:
    if isinstance(node, (list, Expression)):
        return node
    raise DecodeError(f"{where} filter must be a list of boolean expressions")
