"""Environment variable expansion for configuration values.

Handles ``${VAR}`` and ``${VAR:-default}`` expansion in string values.
"""

from __future__ import annotations

import os
import re
from typing import Any

# ${VAR} or ${VAR:-default}
_ENV_VAR_RE = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def _substitute(match: "re.Match[str]") -> str:
    name, default = match.group(1), match.group(2)
    if name in os.environ:
        return os.environ[name]
    return default if default is not None else match.group(0)


def expand_env_vars(value: Any) -> Any:
    """Recursively expand ``${VAR}`` references in string values.

    - An unset variable without a default leaves the placeholder unchanged.
    - Non-string leaves are returned as-is.
    - Dicts and lists are walked recursively.
    """
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(_substitute, value)
    if isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    return value
