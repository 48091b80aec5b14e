"""Manifest JSON (de)serialization."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import BaseModel, ValidationError

from common.errors import ManifestParseError
from manifest.models import Manifest

logger = logging.getLogger(__name__)


def _prune_unset_optionals(model: BaseModel, data: Dict[str, Any]) -> Dict[str, Any]:
    # Only model fields are pruned; seed cells keep their nulls.
    for name, field in type(model).model_fields.items():
        key = field.alias or name
        value = getattr(model, name)
        if value is None:
            data.pop(key, None)
        elif isinstance(value, BaseModel):
            _prune_unset_optionals(value, data[key])
        elif isinstance(value, list):
            for item, item_data in zip(value, data[key]):
                if isinstance(item, BaseModel):
                    _prune_unset_optionals(item, item_data)
    return data


def manifest_to_dict(manifest: Manifest) -> Dict[str, Any]:
    """JSON-ready camelCase dict with null optional fields omitted."""
    return _prune_unset_optionals(manifest, manifest.model_dump(mode="json", by_alias=True))


def serialize_manifest(manifest: Manifest, indent: int = 2) -> str:
    """Serialize a manifest to camelCase JSON, omitting null optional fields."""
    return json.dumps(manifest_to_dict(manifest), indent=indent, ensure_ascii=False)


def deserialize_manifest(text: Union[str, bytes]) -> Manifest:
    """Parse a manifest document; field names are matched case-insensitively."""
    try:
        manifest = Manifest.model_validate_json(text)
    except ValidationError as exc:
        problems = [
            f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        ]
        raise ManifestParseError(f"Invalid manifest document: {problems[0]}", problems) from exc
    return manifest


def save_manifest(manifest: Manifest, path: Union[str, Path]) -> Path:
    """Write a manifest to ``path`` as UTF-8 JSON."""
    target = Path(path)
    target.write_text(serialize_manifest(manifest), encoding="utf-8")
    logger.info("Manifest for %s written to %s", manifest.database or "<unknown>", target)
    return target


def load_manifest(path: Union[str, Path]) -> Manifest:
    """Read a manifest file previously written by :func:`save_manifest`."""
    source = Path(path)
    if not source.is_file():
        raise ManifestParseError(f"Manifest file not found: {source}")
    return deserialize_manifest(source.read_text(encoding="utf-8-sig"))
