"""
SceneMCP command parser

Turns free text such as "create a red cube at 1 2 3" into a ParsedCommand.
Parsing is keyword and pattern based. Classification is an ordered rule
table: the first rule whose predicate matches produces the command, and the
final rule always matches, so ``parse`` never fails.
"""

import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

# 命令类型
CREATE = "create"
UPDATE = "update"
DELETE = "delete"
QUERY = "query"
UNKNOWN = "unknown"

ALL_OBJECTS = "all"

# 颜色名称 -> RGB
COLOR_MAP: Dict[str, int] = {
    "red": 0xff0000,
    "green": 0x00ff00,
    "blue": 0x0000ff,
    "yellow": 0xffff00,
    "purple": 0xff00ff,
    "cyan": 0x00ffff,
    "orange": 0xffa500,
    "pink": 0xffc0cb,
    "white": 0xffffff,
    "black": 0x000000,
    "gray": 0x808080,
    "grey": 0x808080,
}

# 形状名称 -> 几何类型
GEOMETRY_MAP: Dict[str, str] = {
    "cube": "BoxGeometry",
    "box": "BoxGeometry",
    "sphere": "SphereGeometry",
    "ball": "SphereGeometry",
    "cylinder": "CylinderGeometry",
    "cone": "ConeGeometry",
    "plane": "PlaneGeometry",
    "torus": "TorusGeometry",
    "ring": "RingGeometry",
}

DEFAULT_GEOMETRY = "BoxGeometry"

CREATE_WORDS = ("create", "add", "make")
DELETE_WORDS = ("delete", "remove", "clear")
QUERY_WORDS = ("what", "show", "list")
ALL_WORDS = ("all", "everything")

LARGE_WORDS = ("large", "big")
SMALL_WORDS = ("small", "tiny")
LARGE_SCALE = 2.0
SMALL_SCALE = 0.5

_NUMBER = r"(-?\d+(?:\.\d+)?)"
_HEX_RE = re.compile(r"#([0-9a-fA-F]{6}|[0-9a-fA-F]{3})\b")
_POSITION_RE = re.compile(
    r"\b(?:at|position)\s*\(?\s*" + _NUMBER + r"[,\s]+" + _NUMBER + r"[,\s]+" + _NUMBER + r"\s*\)?",
    re.IGNORECASE,
)
_SCALE_RE = re.compile(
    r"\b(?:scale|size)\s*\(?\s*" + _NUMBER + r"(?:[,\s]+" + _NUMBER + r"[,\s]+" + _NUMBER + r")?",
    re.IGNORECASE,
)


@dataclass
class ParsedCommand:
    """Intermediate result of parsing one line of text"""
    type: str
    original_text: str
    object_type: Optional[str] = None
    object_id: Optional[str] = None
    properties: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": self.type, "originalText": self.original_text}
        if self.object_type is not None:
            result["objectType"] = self.object_type
        if self.object_id is not None:
            result["objectId"] = self.object_id
        if self.properties is not None:
            result["properties"] = self.properties
        return result


@dataclass
class Rule:
    """One classification rule: if ``predicate(lowered)`` holds, ``producer(text)`` builds the command"""
    name: str
    predicate: Callable[[str], bool]
    producer: Callable[[str], ParsedCommand]


def _contains_any(words: Tuple[str, ...]) -> Callable[[str], bool]:
    def predicate(lowered: str) -> bool:
        return any(word in lowered for word in words)
    return predicate


def _vector(x: float, y: float, z: float) -> Dict[str, float]:
    return {"x": x, "y": y, "z": z}


def parse_geometry(text: str) -> Optional[str]:
    lowered = text.lower()
    for shape_name, geometry in GEOMETRY_MAP.items():
        if shape_name in lowered:
            return geometry
    return None


def parse_color(text: str) -> Optional[int]:
    """Find a colour name, else a #rgb / #rrggbb hex value"""
    lowered = text.lower()
    for color_name, value in COLOR_MAP.items():
        if color_name in lowered:
            return value

    match = _HEX_RE.search(text)
    if match:
        digits = match.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return int(digits, 16)
    return None


def parse_position(text: str) -> Optional[Dict[str, float]]:
    match = _POSITION_RE.search(text)
    if match:
        return _vector(*(float(g) for g in match.groups()))
    return None


def parse_scale(text: str) -> Optional[Dict[str, float]]:
    lowered = text.lower()
    # Size words win over explicit numbers
    if any(word in lowered for word in LARGE_WORDS):
        return _vector(LARGE_SCALE, LARGE_SCALE, LARGE_SCALE)
    if any(word in lowered for word in SMALL_WORDS):
        return _vector(SMALL_SCALE, SMALL_SCALE, SMALL_SCALE)

    match = _SCALE_RE.search(text)
    if match:
        x = float(match.group(1))
        y = float(match.group(2)) if match.group(2) is not None else x
        z = float(match.group(3)) if match.group(3) is not None else x
        return _vector(x, y, z)
    return None


def _produce_create(text: str) -> ParsedCommand:
    properties: Dict[str, Any] = {
        "position": parse_position(text) or _vector(0.0, 0.0, 0.0),
        "rotation": _vector(0.0, 0.0, 0.0),
    }
    scale = parse_scale(text)
    if scale:
        properties["scale"] = scale
    color = parse_color(text)
    if color is not None:
        properties["materialOptions"] = {"color": color}

    return ParsedCommand(
        type=CREATE,
        original_text=text,
        object_type=parse_geometry(text) or DEFAULT_GEOMETRY,
        properties=properties,
    )


def _produce_delete(text: str) -> ParsedCommand:
    lowered = text.lower()
    if any(word in lowered for word in ALL_WORDS):
        return ParsedCommand(type=DELETE, original_text=text, object_id=ALL_OBJECTS)
    # No reference resolution from a description to an object id yet
    return ParsedCommand(type=DELETE, original_text=text)


def _produce_query(text: str) -> ParsedCommand:
    return ParsedCommand(type=QUERY, original_text=text)


def _produce_unknown(text: str) -> ParsedCommand:
    return ParsedCommand(type=UNKNOWN, original_text=text)


RULES: List[Rule] = [
    Rule(CREATE, _contains_any(CREATE_WORDS), _produce_create),
    Rule(DELETE, _contains_any(DELETE_WORDS), _produce_delete),
    Rule(QUERY, _contains_any(QUERY_WORDS), _produce_query),
    Rule(UNKNOWN, lambda lowered: True, _produce_unknown),
]


def parse(text: str, rules: Optional[List[Rule]] = None) -> ParsedCommand:
    """Parse one line of text; unrecognized input gives ``type == "unknown"``"""
    text = text or ""
    lowered = text.lower()
    for rule in rules or RULES:
        if rule.predicate(lowered):
            return rule.producer(text)
    return _produce_unknown(text)


def generate_object_id() -> str:
    return f"obj_{uuid.uuid4().hex}"


def command_to_object(command: ParsedCommand) -> Optional[Dict[str, Any]]:
    """Turn a create command into an ``object.create`` payload with a fresh id"""
    if command.type != CREATE or not command.object_type:
        return None

    return {
        "id": generate_object_id(),
        "type": command.object_type,
        "properties": dict(command.properties or {}),
    }


def color_name(value: int) -> str:
    for name, color in COLOR_MAP.items():
        if color == value:
            return name
    return f"#{value:06x}"


def shape_name(geometry: str) -> str:
    for name, kind in GEOMETRY_MAP.items():
        if kind == geometry:
            return name
    return geometry


def format_vector(vector: Any) -> str:
    if isinstance(vector, dict):
        vector = [vector["x"], vector["y"], vector["z"]]
    return "(" + ", ".join(f"{v:g}" for v in vector) + ")"


def describe(command: ParsedCommand) -> str:
    """Short description of a create command, e.g. "large red sphere at (1, 2, 3)" """
    properties = command.properties or {}
    words = []
    scale = properties.get("scale")
    if scale and scale["x"] == scale["y"] == scale["z"]:
        if scale["x"] == LARGE_SCALE:
            words.append("large")
        elif scale["x"] == SMALL_SCALE:
            words.append("small")
    color = (properties.get("materialOptions") or {}).get("color")
    if color is not None:
        words.append(color_name(color))
    words.append(shape_name(command.object_type or DEFAULT_GEOMETRY))
    text = " ".join(words)
    if properties.get("position"):
        text += f" at {format_vector(properties['position'])}"
    return text
