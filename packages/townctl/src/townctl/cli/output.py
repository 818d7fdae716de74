"""CLI payload output helpers."""

from __future__ import annotations

from ..contracts.ids import ERROR
from ..contracts.validate import validate_self
from ..core.serialize import dumps_json


def resolve_output_format(*, cli_json: bool, cli_format: str | None) -> str:
    if cli_json:
        return "json"
    return cli_format or "text"


def render_error(*, as_json: bool, message: str, code: int, kind: str = "generic_error", run_id: str = "") -> str:
    if as_json:
        payload: dict[str, object] = {
            "schema_name": ERROR,
            "schema_version": 1,
            "tool": "townctl",
            "status": "error",
            "run_id": run_id,
            "errors": [{"code": code, "message": message, "kind": kind}],
        }
        return dumps_json(validate_self(ERROR, payload), pretty=False)
    return message
