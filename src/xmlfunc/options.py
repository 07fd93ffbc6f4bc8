"""
Parse options.

Options can be given in code or loaded from a YAML or JSON file:

    normalize_case: true          # lower-case the document before parsing
    allow_unquoted_values: false  # accept key=value without quotes
    strip_comments: true          # remove <?xml ?> and <!-- --> markup
"""

import json
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Union


class OptionsError(ValueError):
    """Invalid option file or option value."""
    pass


@dataclass(frozen=True)
class ParseOptions:
    """Switches controlling how a document is prepared and tokenized."""
    normalize_case: bool = True
    allow_unquoted_values: bool = False
    strip_comments: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ParseOptions":
        """Build options from a mapping; unknown keys and non-bool values are errors."""
        if not isinstance(data, Mapping):
            raise OptionsError(f"options must be a mapping, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key not in known:
                raise OptionsError(f"unknown option '{key}'")
            if not isinstance(value, bool):
                raise OptionsError(f"option '{key}' must be true or false, got {value!r}")
            values[key] = value
        return cls(**values)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ParseOptions":
        """Load options from a `.json` file, or YAML for any other suffix."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"options file not found: {path}")
        with path.open("r", encoding="utf-8") as fp:
            if path.suffix == ".json":
                try:
                    data = json.load(fp)
                except json.JSONDecodeError as exc:
                    raise OptionsError(f"{path}: {exc}") from exc
            else:
                import yaml
                try:
                    data = yaml.safe_load(fp)
                except yaml.YAMLError as exc:
                    raise OptionsError(f"{path}: {exc}") from exc
        return cls.from_dict(data or {})

    def to_dict(self) -> Dict[str, bool]:
        return asdict(self)
