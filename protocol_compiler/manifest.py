"""JSON compile report listing every generated file.

WHY: Build tooling that consumes the generated Go files needs to know
which protocol each file came from and whether the source changed since
the last build, without re-parsing anything. The source SHA-256 per
result provides the change check.

HOW: build_manifest() turns CompileResults into a plain dict.
write_manifest() validates that dict against MANIFEST_SCHEMA with
jsonschema before writing it, so a malformed report never reaches disk.

RULES:
- Top level: {"version": 1, "results": [...]}
- One entry per successfully compiled unit, in the order given
- Paths are written as POSIX strings
- Validation runs before the write; a jsonschema.ValidationError aborts it
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Union

import jsonschema

from protocol_compiler.core.driver import CompileResult
from protocol_compiler.core.fallback import GrammarLevel

MANIFEST_VERSION = 1

MANIFEST_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["version", "results"],
    "additionalProperties": False,
    "properties": {
        "version": {"const": MANIFEST_VERSION},
        "results": {
            "type": "array",
            "items": {
                "type": "object",
                "required": [
                    "source",
                    "protocol",
                    "destination",
                    "grammar_level",
                    "source_sha256",
                ],
                "additionalProperties": False,
                "properties": {
                    "source": {"type": "string", "minLength": 1},
                    "protocol": {"type": "string", "pattern": r"^[^\W\d]\w*$"},
                    "destination": {"type": "string", "minLength": 1},
                    "grammar_level": {"enum": [level.value for level in GrammarLevel]},
                    "source_sha256": {"type": "string", "pattern": "^[0-9a-f]{64}$"},
                },
            },
        },
    },
}


def build_manifest(results: Iterable[CompileResult]) -> Dict[str, Any]:
    return {
        "version": MANIFEST_VERSION,
        "results": [
            {
                "source": r.source,
                "protocol": r.protocol_name,
                "destination": r.destination.as_posix(),
                "grammar_level": r.grammar_level.value,
                "source_sha256": r.source_sha256,
            }
            for r in results
        ],
    }


def write_manifest(results: Iterable[CompileResult], path: Union[str, Path]) -> Path:
    """Validate and write the compile report to ``path``.

    Raises:
        jsonschema.ValidationError: If the report does not match
            MANIFEST_SCHEMA. Nothing is written in that case.
    """
    manifest = build_manifest(results)
    jsonschema.validate(instance=manifest, schema=MANIFEST_SCHEMA)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(manifest, indent=2) + "\n", encoding="utf-8")
    return path
