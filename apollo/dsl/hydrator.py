# apollo/dsl/hydrator.py

from typing import List

from ..contracts import ABILoader, InterfaceDescriptor
from ..core.logging import LoggingMixin
from .schema import QuerySchema, ContractSchema, EventSchema, MethodSchema


class InterfaceHydrator(LoggingMixin):
    """Attaches parsed interface descriptors to every contract and event node"""

    def __init__(self, loader: ABILoader):
        self.loader = loader

    def hydrate(self, queries: List[QuerySchema]) -> None:
        for query in queries:
            for event in query.events:
                event.descriptor = self.loader.load(event.abi_path)
                self._check_event(query, event)

            for contract in query.contracts:
                self._hydrate_contract(query, contract)

    def _hydrate_contract(self, query: QuerySchema, contract: ContractSchema) -> None:
        contract.descriptor = self.loader.load(contract.abi_path)

        for method in contract.methods:
            self._check_method(query, contract.descriptor, method)

        for event in contract.events:
            if event.abi_path:
                event.descriptor = self.loader.load(event.abi_path)
            else:
                event.descriptor = contract.descriptor
            self._check_event(query, event, contract)

    def _check_event(self, query: QuerySchema, event: EventSchema,
                     contract: ContractSchema = None) -> None:
        address = contract.address if contract is not None else None
        entry = event.descriptor.event(event.name)
        if entry is None:
            self.log_warning("Event not found in interface descriptor",
                             query_name=query.name, contract_address=address,
                             identifier=event.name, path=event.descriptor.source)
        else:
            missing = [o for o in event.outputs if o not in entry.input_names]
            if missing:
                self.log_warning(f"Event outputs not found in descriptor: {missing}",
                                 query_name=query.name, contract_address=address,
                                 identifier=event.name)
            self.log_debug(f"Event topic {event.descriptor.event_topic(event.name)}",
                           query_name=query.name, contract_address=address,
                           identifier=event.name)

        # Methods nested in an event are called on the emitting contract
        if contract is not None:
            for method in event.methods:
                self._check_method(query, contract.descriptor, method)

    def _check_method(self, query: QuerySchema, descriptor: InterfaceDescriptor,
                      method: MethodSchema) -> None:
        entry = descriptor.function(method.name)
        if entry is None:
            self.log_warning("Method not found in interface descriptor",
                             query_name=query.name, identifier=method.name,
                             path=descriptor.source)
            return

        missing = [o for o in method.outputs if o not in entry.output_names]
        missing += [i for i in method.inputs if i not in entry.input_names]
        if missing:
            self.log_warning(f"Method arguments not found in descriptor: {missing}",
                             query_name=query.name, identifier=method.name)
        self.log_debug(f"Method selector {descriptor.function_selector(method.name)}",
                       query_name=query.name, identifier=method.name)
