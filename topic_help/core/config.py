"""Help source configuration: data model and JSON persistence."""

import json
import os
import platform
from dataclasses import dataclass, field
from typing import Optional

from topic_help.core.errors import ConfigurationError


DEFAULT_CONFIG_FILENAME = "manuals.json"

DEFAULT_PARSER_SPECS = [("anchor", r"\.html?$"), ("delimited", r".*")]


@dataclass
class SourceGroup:
    """A set of help source files sharing the same mode associations.

    Each file is a ``(path, url_prefix)`` pair; a ``None`` prefix means the
    links resolve against the file's own directory.  An empty ``modes``
    list makes the manuals apply in every context.
    """
    files: list[tuple[str, Optional[str]]] = field(default_factory=list)
    modes: list[str] = field(default_factory=list)


@dataclass
class HelpConfig:
    sources: list[SourceGroup] = field(default_factory=list)
    parsers: list[tuple[str, str]] = field(default_factory=lambda: list(DEFAULT_PARSER_SPECS))
    expand_urls: bool = False
    page_size: int = 10

    def to_dict(self) -> dict:
        return {
            "expand_urls": self.expand_urls,
            "page_size": self.page_size,
            "parsers": [{"parser": name, "pattern": pattern}
                        for name, pattern in self.parsers],
            "sources": [
                {"files": [[path, prefix] for path, prefix in g.files],
                 "modes": list(g.modes)}
                for g in self.sources
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HelpConfig":
        sources = []
        for entry in data.get("sources", []):
            files = []
            for item in entry.get("files", []):
                # A bare string is shorthand for a file with no URL prefix
                if isinstance(item, str):
                    files.append((item, None))
                else:
                    path = item[0]
                    prefix = item[1] if len(item) > 1 else None
                    files.append((path, prefix))
            sources.append(SourceGroup(files=files, modes=list(entry.get("modes", []))))
        parsers = [(p["parser"], p["pattern"]) for p in data.get("parsers", [])]
        return cls(
            sources=sources,
            parsers=parsers or list(DEFAULT_PARSER_SPECS),
            expand_urls=bool(data.get("expand_urls", False)),
            page_size=int(data.get("page_size", 10)),
        )


def default_config_path() -> str:
    """Return the OS-appropriate location of the configuration file."""
    system = platform.system()
    if system == "Windows":
        base = os.environ.get("APPDATA", os.path.expanduser("~"))
        data_dir = os.path.join(base, "TopicHelp")
    elif system == "Darwin":
        data_dir = os.path.join(os.path.expanduser("~"),
                                "Library", "Application Support", "TopicHelp")
    else:
        xdg = os.environ.get("XDG_CONFIG_HOME", os.path.join(os.path.expanduser("~"), ".config"))
        data_dir = os.path.join(xdg, "topic_help")
    return os.path.join(data_dir, DEFAULT_CONFIG_FILENAME)


def load_config(path: Optional[str] = None) -> HelpConfig:
    """Load the configuration file; a missing file gives the defaults.

    Raises:
        ConfigurationError: If the file exists but cannot be read or parsed.
    """
    if path is None:
        path = default_config_path()
    if not os.path.exists(path):
        return HelpConfig()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return HelpConfig.from_dict(data)
    except (json.JSONDecodeError, OSError) as e:
        raise ConfigurationError(f"Cannot read configuration {path}: {e}") from e
    except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
        raise ConfigurationError(f"Malformed configuration {path}: {e}") from e


def save_config(config: HelpConfig, path: Optional[str] = None) -> str:
    """Save the configuration to *path* and return the path written."""
    if path is None:
        path = default_config_path()
    path = os.path.abspath(path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)
    return path
