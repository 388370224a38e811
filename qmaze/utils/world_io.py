"""
World serialization utilities for saving and loading obstacle layouts.
Only the layout is stored; learned values are never written.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Union

from ..domain.types import World
from .grid_factory import create_world

FORMAT_VERSION = "1.0"


def world_to_dict(world: World, name: str = "", generation_method: str = "random") -> Dict[str, Any]:
    """Convert a world to a JSON-ready dictionary."""
    return {
        'width': world.width,
        'height': world.height,
        'start': list(world.start),
        'goal': list(world.goal),
        'obstacles': sorted([list(cell) for cell in world.obstacles]),
        'name': name,
        'generation_method': generation_method,
        'generation_attempts': world.generation_attempts,
        'created_at': datetime.now().isoformat(),
        'version': FORMAT_VERSION
    }


def world_from_dict(data: Dict[str, Any]) -> World:
    """
    Rebuild a world from a dictionary.

    Raises:
        ValueError: If a field is missing or malformed, or the layout is invalid
    """
    if not isinstance(data, dict):
        raise ValueError(f"World data must be a JSON object, got {type(data).__name__}")

    try:
        return create_world(
            width=int(data['width']),
            height=int(data['height']),
            start=tuple(data['start']),
            goal=tuple(data['goal']),
            obstacles=[tuple(cell) for cell in data.get('obstacles', [])],
            generation_attempts=int(data.get('generation_attempts', 0))
        )
    except KeyError as e:
        raise ValueError(f"World data is missing field {e}") from e
    except TypeError as e:
        raise ValueError(f"World data has a malformed field: {e}") from e


def save_world(world: World, filepath: Union[str, Path], name: str = "") -> Path:
    """
    Save a world layout to a JSON file.

    Returns:
        Path of the written file
    """
    path = Path(filepath)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        json.dump(world_to_dict(world, name=name or path.stem), f, indent=2)

    return path


def load_world(filepath: Union[str, Path]) -> World:
    """
    Load a world layout from a JSON file.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the contents are not a valid world
    """
    with open(filepath, 'r') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"{filepath} is not valid JSON: {e}") from e

    return world_from_dict(data)
