"""
JSON utilities for cleaning LLM responses.
"""

import json
import re
from typing import Any, Dict, Optional

_OBJECT = re.compile(r"\{[\s\S]*\}")


def extract_json_object(response: str) -> Optional[Dict[str, Any]]:
    """Return the outermost JSON object embedded in a response, or None.

    Models often wrap the object in prose or ```json code fences, so the text
    from the first '{' to the last '}' is parsed and everything around it is
    dropped.
    """
    match = _OBJECT.search(response or "")
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except ValueError:
        return None
    return data if isinstance(data, dict) else None
