import json
import logging
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel

logger = logging.getLogger(__name__)


def to_jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, exclude_none=True)
    if isinstance(data, (list, tuple)):
        return [to_jsonable(d) for d in data]
    if isinstance(data, dict):
        return {k: to_jsonable(v) for k, v in data.items()}
    return data


def write_json(path: Union[str, Path], data: Any) -> Path:
    """Serialize models (camelCase aliases) or plain data to ``path``; parent dirs are created."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as fh:
        json.dump(to_jsonable(data), fh, indent=2, ensure_ascii=False)
    logger.info("Wrote %s", p)
    return p


def read_json(path: Union[str, Path]) -> Any:
    with Path(path).open("r", encoding="utf-8-sig") as fh:
        return json.load(fh)
