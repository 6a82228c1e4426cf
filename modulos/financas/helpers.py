from flask import request

from . import rules


def json_payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def arg_int(name: str) -> int | None:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise rules.ValidationError(f"Parâmetro '{name}' inválido.")


def arg_bool(name: str) -> bool | None:
    raw = request.args.get(name)
    if raw is None or raw.strip() == "":
        return None
    return rules.parse_bool(raw)
