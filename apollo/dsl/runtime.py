# apollo/dsl/runtime.py
"""
Runtime evaluation of one Call/Event Result against its query.

Order per result: result variables, chain functions, matching transforms,
save, filter. All of it runs on an overlay of the query's live context;
the overlay is merged back only when the whole evaluation succeeded.
"""

from typing import Callable, Dict, List, Optional

from eth_utils import is_hex_address, to_checksum_address

from ..clients.interfaces import ChainFunctionProvider
from ..core.errors import DecodeError
from ..core.logging import LoggingMixin
from ..expressions import EvalContext, Value, ValueKind, coerce_raw_value, evaluate_node, decode_body
from ..types import CallResult, Chain, EvmAddress, ResultType
from .schema import Schema, QuerySchema, Transform


def generate_context_vars(result: CallResult) -> Dict[str, Value]:
    """Result-scoped variables: block metadata plus every raw input and output"""
    contract_address = result.contract_address or ""
    if is_hex_address(contract_address):
        contract_address = to_checksum_address(contract_address)

    variables = {
        "contract_address": Value.string(contract_address),
        "blocknumber": Value.number(result.block_number),
        "timestamp": Value.number(result.timestamp),
        "block_hash": Value.string(result.block_hash),
        "chain": Value.string(str(result.chain)),
    }

    if not result.is_method:
        variables["tx_hash"] = Value.string(result.tx_hash or "")
        variables["event_name"] = Value.string(result.event_name or "")
        variables["tx_index"] = Value.number(result.tx_index or 0)

    for source in (result.inputs, result.outputs):
        for name, raw in source.items():
            try:
                variables[name] = coerce_raw_value(raw)
            except DecodeError as e:
                raise DecodeError(f"result value '{name}': {e.message}",
                                  query_name=result.query_name,
                                  identifier=result.identifier) from e
    return variables


def build_chain_functions(provider: ChainFunctionProvider, chain: Chain,
                          block_number: int) -> Dict[str, Callable[..., Value]]:
    """Chain state lookups pinned to the result's chain and block"""

    def _address(value: Value, fn: str) -> EvmAddress:
        if value.kind != ValueKind.STRING or not is_hex_address(value.raw):
            raise DecodeError(f"{fn}() expects an address, got {value.to_display()!r}")
        return EvmAddress(to_checksum_address(value.raw))

    def _call(fn: str, lookup, *args) -> Value:
        try:
            return Value.number(lookup(chain, *args, block_number))
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError(f"{fn}() failed: {e}", chain=str(chain), block_number=block_number) from e

    def balance(address: Value) -> Value:
        return _call("balance", provider.balance, _address(address, "balance"))

    def token_balance(account: Value, token: Value) -> Value:
        return _call("token_balance", provider.token_balance,
                     _address(account, "token_balance"), _address(token, "token_balance"))

    return {
        "balance": balance,
        "token_balance": token_balance,
    }


class RuntimeEvaluator(LoggingMixin):
    """Evaluates results for a loaded schema, one result per query at a time"""

    def __init__(self, schema: Schema, provider: ChainFunctionProvider):
        self.schema = schema
        self.provider = provider

    def evaluate(self, result: CallResult) -> Optional[Dict[str, Value]]:
        """Save output for ``result``, or None when filtered out or the query is unknown"""
        query = self.schema.get_query(result.query_name)
        if query is None:
            self.log_warning("Result for unknown query ignored",
                             query_name=result.query_name, identifier=result.identifier)
            return None

        with query.lock:
            overlay = query.context.child()
            try:
                outputs, keep = self._evaluate_in(query, overlay, result)
            except DecodeError as e:
                self.log_error("Result evaluation failed",
                               **self.log_result_context(query.name,
                                                         identifier=result.identifier,
                                                         block_number=result.block_number,
                                                         error=e.message))
                raise DecodeError(e.message, **{**e.context,
                                                "query_name": query.name,
                                                "block_number": result.block_number}) from e
            overlay.commit()

        if not keep:
            self.log_debug("Result filtered out",
                           query_name=query.name, identifier=result.identifier,
                           block_number=result.block_number)
            return None
        return outputs

    def _evaluate_in(self, query: QuerySchema, ctx: EvalContext, result: CallResult):
        ctx.update(generate_context_vars(result))
        ctx.register(build_chain_functions(self.provider, result.chain, result.block_number))

        self.eval_transforms(query, ctx, result.type, result.identifier, result.event_name)
        outputs = self.eval_save(query, ctx)
        keep = self.eval_filter(query, ctx)
        return outputs, keep

    def eval_transforms(self, query: QuerySchema, ctx: EvalContext,
                        result_type: ResultType, identifier: str,
                        event_name: Optional[str] = None) -> None:
        for transform in self._matching_transforms(query, result_type, identifier, event_name):
            # Decode the whole body before merging anything
            derived = decode_body(transform.body, ctx)
            ctx.update(derived)
            self.log_debug("Transform applied",
                           query_name=query.name, identifier=identifier,
                           result_type=str(result_type))

    def eval_save(self, query: QuerySchema, ctx: EvalContext) -> Dict[str, Value]:
        return decode_body(query.save.body, ctx)

    def eval_filter(self, query: QuerySchema, ctx: EvalContext) -> bool:
        if query.filter is None or query.filter.body is None:
            return True

        decoded = evaluate_node(query.filter.body, ctx)
        if decoded.kind != ValueKind.LIST:
            raise DecodeError(f"filter must be a list of booleans, got {decoded.kind.value}")

        for item in decoded.raw:
            if item.kind != ValueKind.BOOL:
                raise DecodeError(f"filter entries must be booleans, got {item.kind.value}")
        return all(item.raw for item in decoded.raw)

    @staticmethod
    def _matching_transforms(query: QuerySchema, result_type: ResultType,
                             identifier: str,
                             event_name: Optional[str] = None) -> List[Transform]:
        if result_type == ResultType.GLOBAL_EVENT:
            return [e.transform for e in query.events
                    if e.transform is not None and e.output_name == identifier]

        if is_hex_address(identifier):
            identifier = to_checksum_address(identifier)
        contracts = [c for c in query.contracts if c.address == identifier]
        transforms = [c.transform for c in contracts if c.transform is not None]

        # Contract events may carry their own transform, applied after the contract one
        if result_type == ResultType.EVENT:
            transforms += [e.transform for c in contracts for e in c.events
                           if e.transform is not None and e.name == event_name]
        return transforms


def evaluate(schema: Schema, provider: ChainFunctionProvider,
             result: CallResult) -> Optional[Dict[str, Value]]:
    return RuntimeEvaluator(schema, provider).evaluate(result)
