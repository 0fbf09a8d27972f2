"""Runtime configuration state management."""

from typing import Optional

# Global runtime configuration state
_config = {
    "service_name": None,
    "debug": False,
    "attr_truncation_limit": 1000,
    "max_workers": None,
}


def set_service_name(value: Optional[str]) -> None:
    _config["service_name"] = value


def get_service_name() -> Optional[str]:
    return _config["service_name"]


def set_debug(value: bool) -> None:
    _config["debug"] = value


def get_debug() -> bool:
    return _config["debug"]


def set_attr_truncation_limit(value: int) -> None:
    _config["attr_truncation_limit"] = value


def get_attr_truncation_limit() -> int:
    return _config["attr_truncation_limit"]


def set_max_workers(value: Optional[int]) -> None:
    _config["max_workers"] = value


def get_max_workers() -> Optional[int]:
    return _config["max_workers"]
