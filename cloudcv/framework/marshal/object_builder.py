"""
Result object builder.

Fields are marshaled on assignment, so a builder only ever holds dynamic values:

    result = ObjectBuilder()
    result["patternFound"] = found
    if found:
        result["corners"] = corners
    return result.build()
"""

from typing import Any, Dict, Iterator

from cloudcv.framework.marshal.registry import to_dynamic


class ObjectBuilder:
    """Builds a dynamic object (dict of named fields) from native values."""

    def __init__(self) -> None:
        self._fields: Dict[str, Any] = {}

    def __setitem__(self, name: str, value: Any) -> None:
        self._fields[name] = to_dynamic(value)

    def __getitem__(self, name: str) -> Any:
        return self._fields[name]

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def build(self) -> Dict[str, Any]:
        return dict(self._fields)
