"""Recorded RFC session.

Replays previously captured BAPI responses through SapControllingConnector,
for offline runs and tests. A recording is a JSON object keyed by function
name:

    {
        "BAPI_COSTCENTER_GETLIST1": {"COSTCENTER_LIST": [{"COSTCENTER": "0010"}]},
        "BAPI_ACC_CO_DOCUMENT_FIND": {
            "DOC_HEADERS": [{"DOC_NO": "D1", "POSTGDATE": "20240105", "CO_AREA_CURR": "EUR"}],
            "LINE_ITEMS": [{"DOC_NO": "D1", "COSTCENTER": "0010", "VALUE_COCUR": "150.00"}]
        }
    }
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union


class RecordedRfcSession:
    """Callable RFC transport answering from a recording.

    Every call is kept in ``calls`` as ``(function_name, params)``.
    """

    def __init__(self, responses: Dict[str, Dict[str, Any]]):
        self._responses = responses
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RecordedRfcSession":
        with open(path, "r", encoding="utf-8") as f:
            return cls(json.load(f))

    def __call__(self, function_name: str, **params: Any) -> Dict[str, Any]:
        self.calls.append((function_name, params))
        if function_name not in self._responses:
            raise KeyError(f"No recorded response for {function_name}")
        return copy.deepcopy(self._responses[function_name])

    def calls_to(self, function_name: str) -> List[Dict[str, Any]]:
        return [params for name, params in self.calls if name == function_name]
