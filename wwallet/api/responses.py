from decimal import Decimal

from pydantic import BaseModel

from wwallet.core.money import to_money


def ok(message: str | None = None, **payload) -> dict:
    body = {"success": True}
    if message:
        body["message"] = message
    body.update(payload)
    return body


def dump(model: type[BaseModel], obj) -> dict:
    return model.model_validate(obj).model_dump(mode="json")


def money(value: Decimal) -> str:
    return str(to_money(value))
