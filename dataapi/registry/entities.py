import yaml, json, os, logging, typing as t
from dataclasses import dataclass
from pathlib import Path

import jsonschema

log = logging.getLogger("dataapi.registry")

VIEWS_PATH = Path(os.getenv("VIEWS_FILE", "config/views.yaml"))
ALLOW_UNMAPPED_ENTITIES = os.getenv("ALLOW_UNMAPPED_ENTITIES", "true").lower() in ("1", "true", "yes")

TABLE_PREFIX = "table::"
QUERY_PREFIX = "query::"

VIEWS_SCHEMA: dict[str, t.Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Entity mapping",
    "type": "object",
    "properties": {
        "entities": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "object": {"type": "string", "minLength": 1},
                    "description": {"type": "string"},
                    "maxResults": {"type": "integer", "minimum": 1},
                },
                "required": ["object"],
            },
        },
    },
    "required": ["entities"],
}


class EntityMeta(t.TypedDict, total=False):
    object: str
    description: str
    maxResults: int


@dataclass(frozen=True)
class EntityTarget:
    """Where an entity's rows come from: exactly one of table/query is set."""
    entity: str
    table: str = ""
    query: str = ""
    max_results: int | None = None

    @property
    def mode(self) -> str:
        return "query" if self.query else "table"


def parse_object_name(entity: str, object_name: str, max_results: int | None = None) -> EntityTarget:
    """
    Apply the prefix convention:
      - 'table::ds.t'     -> table 'ds.t'
      - 'query::SELECT..' -> raw query 'SELECT..'
      - anything else     -> table named as-is
    """
    if object_name.startswith(TABLE_PREFIX):
        return EntityTarget(entity=entity, table=object_name[len(TABLE_PREFIX):], max_results=max_results)
    if object_name.startswith(QUERY_PREFIX):
        return EntityTarget(entity=entity, query=object_name[len(QUERY_PREFIX):], max_results=max_results)
    return EntityTarget(entity=entity, table=object_name, max_results=max_results)


class Registry:
    def __init__(self, allow_unmapped: bool = ALLOW_UNMAPPED_ENTITIES):
        self.entities_cfg: dict[str, EntityMeta] = {}
        self.allow_unmapped = allow_unmapped
        self.views_path: Path = VIEWS_PATH

    def load_views(self, path: Path | str | None = None) -> None:
        if path is not None:
            self.views_path = Path(path)
        views_path = self.views_path
        if not views_path.exists():
            raise RuntimeError(f"View mapping file not found: {views_path}")
        with views_path.open("r", encoding="utf-8") as f:
            if views_path.suffix.lower() in (".yaml", ".yml"):
                cfg = yaml.safe_load(f) or {}
            else:
                cfg = json.load(f)
        jsonschema.validate(instance=cfg, schema=VIEWS_SCHEMA)

        norm: dict[str, EntityMeta] = {}
        for k, v in cfg["entities"].items():
            item: EntityMeta = {"object": v["object"]}
            if "description" in v:
                item["description"] = v["description"]
            if "maxResults" in v:
                item["maxResults"] = int(v["maxResults"])
            norm[k] = item
        self.entities_cfg = norm
        log.info("loaded %d entities from %s", len(norm), views_path)

    def resolve(self, name: str) -> EntityTarget:
        """
        Map an entity name to its table or raw query. Unconfigured names
        are used as table names unless unmapped entities are disallowed.
        """
        cfg = self.entities_cfg.get(name)
        if cfg is None:
            if not self.allow_unmapped:
                raise KeyError(f"Unknown entity: {name}")
            cfg = {"object": name}
        target = parse_object_name(name, cfg["object"], cfg.get("maxResults"))
        log.info("entity %s -> %s %s", name, target.mode, target.query or target.table)
        return target

    def refresh_all(self) -> dict[str, str]:
        """Re-read the views file and report how each entity resolves."""
        self.load_views()
        return {name: self.resolve(name).mode for name in self.entities_cfg}
