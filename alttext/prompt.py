"""Prompt templating - `{asset.<field>}` and `{site.<field>}` placeholders."""
import re
from typing import Any, Callable

from alttext.constants import DEFAULT_PROMPT
from alttext.models import ImageAsset, Site

PLACEHOLDER = re.compile(r"\{(asset|site)\.([A-Za-z_][A-Za-z0-9_]*)\}")

ASSET_FIELDS: dict[str, Callable[[ImageAsset], Any]] = {
    "id": lambda a: a.id,
    "filename": lambda a: a.filename,
    "title": lambda a: a.title,
    "alt": lambda a: a.alt,
    "kind": lambda a: a.kind,
    "extension": lambda a: a.extension,
    "mimeType": lambda a: a.mime_type,
    "mime_type": lambda a: a.mime_type,
    "width": lambda a: a.width,
    "height": lambda a: a.height,
    "size": lambda a: a.size,
    "siteId": lambda a: a.site_id,
    "site_id": lambda a: a.site_id,
}

SITE_FIELDS: dict[str, Callable[[Site], Any]] = {
    "id": lambda s: s.id,
    "name": lambda s: s.name,
    "handle": lambda s: s.handle,
    "language": lambda s: s.language,
}


def _lookup(fields: dict[str, Callable[[Any], Any]], view: Any, name: str) -> str:
    match (fields.get(name), view):
        case (None, _) | (_, None):
            return ""
        case (accessor, obj):
            value = accessor(obj)
            return "" if value is None else str(value)


def expand_template(template: str, asset: ImageAsset | None, site: Site | None) -> str:
    """Replace every placeholder in one pass. Unknown fields become ""."""
    def _replace(m: re.Match) -> str:
        scope, name = m.group(1), m.group(2)
        match scope:
            case "asset":
                return _lookup(ASSET_FIELDS, asset, name)
            case _:
                return _lookup(SITE_FIELDS, site, name)

    return PLACEHOLDER.sub(_replace, template)


def build_prompt(template: str, asset: ImageAsset | None, site: Site | None) -> str:
    match expand_template(template or "", asset, site).strip():
        case "":
            return DEFAULT_PROMPT
        case prompt:
            return prompt
