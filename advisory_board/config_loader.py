"""YAML-based configuration loader for the advisory board service and its boards."""

import logging
import yaml
from pathlib import Path
from typing import List, Dict, Any, Optional, Tuple

from .models import Advisor, ServiceConfig

logger = logging.getLogger(__name__)

_config_cache: Optional[Dict[str, Any]] = None
_boards_cache: Optional[Dict[str, Dict[str, Any]]] = None

DEFAULT_CONFIG: Dict[str, Any] = {
    "service": {"timeout_ms": 30000, "retry_attempts": 3, "retry_delay_ms": 1000},
    "responder": {
        "id": "template",
        "fallback": None,
        "temperature": 0.4,
        "max_tokens": 600,
        "latency_ms": [0, 0],
    },
    "summary": {"latency_ms": 0},
}


def get_project_root() -> Path:
    return Path(__file__).parent.parent


def get_config_dir() -> Path:
    return get_project_root() / "config"


def _load_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config() -> Dict[str, Any]:
    """Load service configuration from config/service.yaml."""
    global _config_cache
    if _config_cache is not None:
        return _config_cache

    config_path = get_config_dir() / "service.yaml"
    if config_path.exists():
        _config_cache = _load_yaml(config_path)
        logger.info("Loaded configuration from %s", config_path)
    else:
        logger.warning("%s not found, using defaults", config_path)
        _config_cache = {key: dict(value) for key, value in DEFAULT_CONFIG.items()}
    return _config_cache


def reload_config() -> Dict[str, Any]:
    """Force reload configuration from disk."""
    global _config_cache, _boards_cache
    _config_cache = None
    _boards_cache = None
    return load_config()


def _section(name: str) -> Dict[str, Any]:
    merged = dict(DEFAULT_CONFIG.get(name, {}))
    merged.update(load_config().get(name) or {})
    return merged


def get_service_config() -> ServiceConfig:
    section = _section("service")
    config = ServiceConfig(
        timeout_ms=int(section["timeout_ms"]),
        retry_attempts=int(section["retry_attempts"]),
        retry_delay_ms=int(section["retry_delay_ms"]),
    )
    config.validate()
    return config


def get_responder_config() -> Dict[str, Any]:
    return _section("responder")


def get_responder_latency() -> Tuple[int, int]:
    low, high = get_responder_config().get("latency_ms") or [0, 0]
    return int(low), int(high)


def get_summary_latency() -> int:
    return int(_section("summary").get("latency_ms", 0))


# ============== Boards & Advisors ==============

def load_boards() -> Dict[str, Dict[str, Any]]:
    """Load all board configurations from config/boards/*.yaml."""
    global _boards_cache
    if _boards_cache is not None:
        return _boards_cache

    boards_dir = get_config_dir() / "boards"
    _boards_cache = {}

    if not boards_dir.exists():
        logger.warning("%s not found", boards_dir)
        return _boards_cache

    for yaml_file in sorted(boards_dir.glob("*.yaml")):
        board_id = yaml_file.stem
        try:
            board_data = _load_yaml(yaml_file)
            _validate_board(board_data, yaml_file.name)
        except (yaml.YAMLError, ValueError, OSError) as e:
            logger.warning("Error loading board %s: %s", yaml_file, e)
            continue
        board_data["id"] = board_id
        _boards_cache[board_id] = board_data
        logger.info("Loaded board: %s (%s)", board_data.get("name", board_id), board_id)

    return _boards_cache


def _validate_board(data: Dict[str, Any], filename: str):
    if not isinstance(data, dict) or not data.get("name"):
        raise ValueError(f"{filename}: board must have a name")
    advisors = data.get("advisors")
    if not isinstance(advisors, list) or not advisors:
        raise ValueError(f"{filename}: board must list at least one advisor")
    for i, entry in enumerate(advisors):
        missing = [k for k in ("name", "expertise", "background") if not (entry or {}).get(k)]
        if missing:
            raise ValueError(f"{filename}: advisor {i} missing {', '.join(missing)}")


def get_board(board_id: str) -> Optional[Dict[str, Any]]:
    return load_boards().get(board_id)


def get_board_ids() -> List[str]:
    return list(load_boards().keys())


def get_advisors(board_id: str) -> List[Advisor]:
    """Advisors of a board; ids are '<board_id>-<index>'."""
    board = get_board(board_id)
    if not board:
        return []
    return [
        Advisor(
            id=f"{board_id}-{i}",
            name=entry["name"],
            expertise=entry["expertise"],
            background=entry["background"],
            domain=board_id,
        )
        for i, entry in enumerate(board.get("advisors", []))
    ]


def get_all_advisors() -> List[Advisor]:
    return [a for board_id in get_board_ids() for a in get_advisors(board_id)]


def get_advisor(advisor_id: str) -> Optional[Advisor]:
    for advisor in get_all_advisors():
        if advisor.id == advisor_id:
            return advisor
    return None


def get_boards_summary() -> List[Dict[str, Any]]:
    """Summary of all boards for API responses."""
    return [
        {
            "id": board_id,
            "name": board.get("name", board_id),
            "description": board.get("description", ""),
            "advisors": [a.to_dict() for a in get_advisors(board_id)],
            "use_cases": board.get("use_cases", []),
        }
        for board_id, board in load_boards().items()
    ]
