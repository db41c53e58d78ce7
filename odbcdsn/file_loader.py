import configparser
import json
from pathlib import Path

import yaml


def load_ini_connections(file):
    """One section per connection; an optional [settings] section names the default connection."""
    parser = configparser.ConfigParser(interpolation=None)
    with open(file, encoding='utf-8') as f:
        parser.read_file(f)

    data = {"connections": {s: dict(parser[s]) for s in parser.sections() if s != "settings"}}
    if parser.has_section("settings"):
        data["default_connection"] = parser["settings"].get("default_connection")
    return data


def load_json_connections(file):
    with open(file, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_yaml_connections(file):
    with open(file, 'r', encoding='utf-8') as f:
        # an empty document loads as None
        return yaml.safe_load(f) or {}


LOADERS = {
    ".ini": load_ini_connections,
    ".json": load_json_connections,
    ".yaml": load_yaml_connections,
    ".yml": load_yaml_connections,
}


def loader_for(file):
    """Return the loader for a connections file by suffix, or None when the type is not supported."""
    return LOADERS.get(Path(file).suffix.lower())
