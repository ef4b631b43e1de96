# apollo/contracts/abi_loader.py

from pathlib import Path
from typing import Dict, List, Union, Any

import msgspec

from ..core.errors import InterfaceLoadError
from ..core.logging import LoggingMixin
from .descriptor import AbiEntry, InterfaceDescriptor


class WrappedABI(msgspec.Struct):
    abi: List[AbiEntry]


class ABILoader(LoggingMixin):
    """Loads interface descriptors (JSON ABIs) relative to the config directory, with caching"""

    def __init__(self, conf_dir: Union[str, Path]):
        self.conf_dir = Path(conf_dir)
        self._abi_cache: Dict[Path, InterfaceDescriptor] = {}
        self._list_decoder = msgspec.json.Decoder(type=List[AbiEntry])
        self._wrapped_decoder = msgspec.json.Decoder(type=WrappedABI)

        self.log_debug("ABI loader initialized", path=str(self.conf_dir))

    def load(self, abi_path: str) -> InterfaceDescriptor:
        """Load and parse a descriptor; raises InterfaceLoadError naming the path"""
        if not abi_path:
            raise InterfaceLoadError("no interface descriptor path given", path=abi_path)

        path = (self.conf_dir / abi_path).resolve()

        if path in self._abi_cache:
            return self._abi_cache[path]

        try:
            raw = path.read_bytes()
        except OSError as e:
            self.log_error("ABI file could not be read", path=str(path), error=str(e))
            raise InterfaceLoadError(f"reading ABI file: {e}", path=str(path)) from e

        descriptor = InterfaceDescriptor(entries=self._decode(raw, path), source=str(path))
        self._abi_cache[path] = descriptor

        self.log_debug("ABI loaded successfully",
                       path=str(path),
                       abi_functions=len(descriptor.functions),
                       abi_events=len(descriptor.events))
        return descriptor

    def _decode(self, raw: bytes, path: Path) -> List[AbiEntry]:
        # Direct ABI array, or an artifact object with an 'abi' key
        try:
            return self._list_decoder.decode(raw)
        except msgspec.DecodeError as list_error:
            try:
                return self._wrapped_decoder.decode(raw).abi
            except msgspec.DecodeError:
                self.log_error("Invalid ABI file", path=str(path), error=str(list_error))
                raise InterfaceLoadError(f"parsing ABI: {list_error}", path=str(path)) from list_error

    def get_cache_stats(self) -> Dict[str, Any]:
        return {
            "total_entries": len(self._abi_cache),
            "paths": sorted(str(p) for p in self._abi_cache),
        }
