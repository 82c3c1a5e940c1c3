"""
Minimal contract interface built on eth_abi.

Encodes calldata and decodes return data for the functions of a JSON ABI,
so batched eth_call payloads can be built without a connected provider.
"""

from typing import Any, Dict, List, Sequence, Tuple

from eth_abi import decode, encode
from hexbytes import HexBytes
from web3 import Web3

from .errors import DecodeError, ValidationError


def abi_type(param: Dict[str, Any]) -> str:
    """
    Render an ABI parameter as an eth_abi type string.

    Tuples become ``(t1,t2)`` with any array suffix kept, e.g. ``(uint256,address)[]``.
    """
    param_type = param["type"]
    if param_type.startswith("tuple"):
        inner = ",".join(abi_type(component) for component in param["components"])
        return f"({inner}){param_type[len('tuple'):]}"
    return param_type


class ContractInterface:
    """Function-level view over a JSON ABI."""

    def __init__(self, abi: Sequence[Dict[str, Any]]):
        self._functions: Dict[str, Dict[str, Any]] = {}
        self._selectors: Dict[str, bytes] = {}

        for entry in abi:
            if entry.get("type", "function") != "function":
                continue
            name = entry["name"]
            input_types = [abi_type(p) for p in entry.get("inputs", [])]
            signature = f"{name}({','.join(input_types)})"

            self._functions[name] = entry
            self._selectors[name] = bytes(Web3.keccak(text=signature)[:4])

    def _function(self, method: str) -> Dict[str, Any]:
        try:
            return self._functions[method]
        except KeyError:
            raise ValidationError(f"Unknown method '{method}'")

    @property
    def methods(self) -> List[str]:
        return list(self._functions)

    def selector(self, method: str) -> bytes:
        self._function(method)
        return self._selectors[method]

    def input_types(self, method: str) -> List[str]:
        return [abi_type(p) for p in self._function(method).get("inputs", [])]

    def output_types(self, method: str) -> List[str]:
        return [abi_type(p) for p in self._function(method).get("outputs", [])]

    def component_names(self, method: str) -> List[str]:
        """Field names of the first output when it is a tuple (or tuple array)."""
        outputs = self._function(method).get("outputs", [])
        if not outputs:
            return []
        return [c["name"] for c in outputs[0].get("components", [])]

    def encode_call(self, method: str, params: Sequence[Any] = ()) -> str:
        """
        Build hex calldata for ``method``.

        Raises:
            ValidationError: If the method is unknown or params do not encode
        """
        types = self.input_types(method)
        if len(types) != len(params):
            raise ValidationError(
                f"{method} expects {len(types)} params, got {len(params)}"
            )
        try:
            encoded_args = encode(types, list(params))
        except Exception as e:
            raise ValidationError(f"Failed to encode {method} params: {e}")

        return "0x" + (self._selectors[method] + encoded_args).hex()

    def decode_result(self, method: str, data: Any) -> Tuple[Any, ...]:
        """
        Decode raw return data for ``method``.

        Raises:
            DecodeError: If the data does not match the output types
        """
        types = self.output_types(method)
        try:
            raw = bytes(HexBytes(data))
            return tuple(decode(types, raw))
        except Exception as e:
            raise DecodeError(f"Failed to decode {method} result: {e}")
