"""
Concrete settings entry types.

Values read from the store are converted defensively: QSettings INI files
return most scalars as text, and single-item lists as plain strings.
Values that cannot be converted fall back to the entry's default.
"""

import logging
import math
from enum import Enum, Flag
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type, TypeVar, Union, cast

import orjson
from PySide6.QtGui import QColor

from .entry import SettingsEntryByReference, SettingsEntryByValue
from .store import SettingsStore
from .types import SettingsOption, SettingsType

if TYPE_CHECKING:
    from .tree_node import SettingsTreeNode

logger = logging.getLogger(__name__)

ParentType = Union["SettingsTreeNode", str, None]

# QSettings stores integers as signed 64-bit values
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

E = TypeVar("E", bound=Enum)
F = TypeVar("F", bound=Flag)


class SettingsEntryVariant(SettingsEntryByReference[Any]):
    """Entry holding any value the store can carry, without conversion."""

    def settings_type(self) -> SettingsType:
        return SettingsType.VARIANT

    def convert_from_variant(self, value: Any) -> Any:
        return value


class SettingsEntryString(SettingsEntryByReference[str]):
    """String entry with optional length limits."""

    def __init__(
        self,
        key: str,
        parent: ParentType,
        default_value: str = "",
        description: str = "",
        options: SettingsOption = SettingsOption.NONE,
        minimum_length: int = 0,
        maximum_length: int = -1,
        store: Optional[SettingsStore] = None,
    ):
        """Initialize the entry.

        Args:
            minimum_length: Minimum accepted length
            maximum_length: Maximum accepted length, -1 for no limit
        """
        self._minimum_length = minimum_length
        self._maximum_length = maximum_length
        super().__init__(key, parent, default_value, description, options, store)

    @property
    def minimum_length(self) -> int:
        return self._minimum_length

    @property
    def maximum_length(self) -> int:
        return self._maximum_length

    def settings_type(self) -> SettingsType:
        return SettingsType.STRING

    def convert_from_variant(self, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return ", ".join(str(item) for item in cast(List[object], value))
        return str(value)

    def check_value(self, value: str) -> bool:
        if not isinstance(value, str):
            return False
        if len(value) < self._minimum_length:
            logger.debug(
                f"String '{value}' is shorter than minimum length {self._minimum_length} "
                f"for setting '{self.definition_key()}'"
            )
            return False
        if 0 <= self._maximum_length < len(value):
            logger.debug(
                f"String '{value}' is longer than maximum length {self._maximum_length} "
                f"for setting '{self.definition_key()}'"
            )
            return False
        return True


class SettingsEntryStringList(SettingsEntryByReference[List[str]]):
    """List of strings entry."""

    def __init__(
        self,
        key: str,
        parent: ParentType,
        default_value: Optional[List[str]] = None,
        description: str = "",
        options: SettingsOption = SettingsOption.NONE,
        store: Optional[SettingsStore] = None,
    ):
        if default_value is None:
            default_value = []
        super().__init__(key, parent, default_value, description, options, store)

    def settings_type(self) -> SettingsType:
        return SettingsType.STRING_LIST

    def convert_to_variant(self, value: List[str]) -> Any:
        return list(value)

    def convert_from_variant(self, value: Any) -> List[str]:
        # INI files give back a plain string for single-item lists
        if value is None or value == "":
            return []
        if isinstance(value, str):
            return [value]
        if isinstance(value, (list, tuple)):
            return [
                str(item) if item is not None else ""
                for item in cast(List[object], value)
            ]
        return [str(value)]

    def check_value(self, value: List[str]) -> bool:
        return isinstance(value, (list, tuple)) and all(
            isinstance(item, str) for item in value
        )


class SettingsEntryVariantMap(SettingsEntryByReference[Dict[str, Any]]):
    """String-keyed mapping entry, stored as JSON text."""

    def __init__(
        self,
        key: str,
        parent: ParentType,
        default_value: Optional[Dict[str, Any]] = None,
        description: str = "",
        options: SettingsOption = SettingsOption.NONE,
        store: Optional[SettingsStore] = None,
    ):
        if default_value is None:
            default_value = {}
        super().__init__(key, parent, default_value, description, options, store)

    def settings_type(self) -> SettingsType:
        return SettingsType.VARIANT_MAP

    def convert_to_variant(self, value: Dict[str, Any]) -> Any:
        return orjson.dumps(value).decode("utf-8")

    def convert_from_variant(self, value: Any) -> Dict[str, Any]:
        if value is None:
            return {}
        if isinstance(value, dict):
            return dict(cast(Dict[str, Any], value))
        try:
            data = orjson.loads(str(value))
        except orjson.JSONDecodeError as e:
            logger.debug(f"Invalid map value for setting '{self.definition_key()}': {e}")
            return self._fallback()
        if not isinstance(data, dict):
            logger.debug(f"Map value for setting '{self.definition_key()}' is not an object")
            return self._fallback()
        return cast(Dict[str, Any], data)

    def check_value(self, value: Dict[str, Any]) -> bool:
        if not isinstance(value, dict):
            return False
        try:
            orjson.dumps(value)
        except TypeError as e:
            logger.debug(f"Map value cannot be stored for setting '{self.definition_key()}': {e}")
            return False
        return True

    def _fallback(self) -> Dict[str, Any]:
        default = self.default_value_as_variant()
        if default is None:
            return {}
        return cast(Dict[str, Any], orjson.loads(default))


class SettingsEntryBool(SettingsEntryByValue[bool]):
    """Boolean entry."""

    def __init__(
        self,
        key: str,
        parent: ParentType,
        default_value: bool = False,
        description: str = "",
        options: SettingsOption = SettingsOption.NONE,
        store: Optional[SettingsStore] = None,
    ):
        super().__init__(key, parent, default_value, description, options, store)

    def settings_type(self) -> SettingsType:
        return SettingsType.BOOL

    def convert_from_variant(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes")
        return bool(value) if value is not None else False

    def check_value(self, value: bool) -> bool:
        return isinstance(value, bool)


class SettingsEntryInteger(SettingsEntryByValue[int]):
    """Integer entry with optional bounds."""

    def __init__(
        self,
        key: str,
        parent: ParentType,
        default_value: int = 0,
        description: str = "",
        options: SettingsOption = SettingsOption.NONE,
        minimum: Optional[int] = None,
        maximum: Optional[int] = None,
        store: Optional[SettingsStore] = None,
    ):
        self._minimum = minimum
        self._maximum = maximum
        super().__init__(key, parent, default_value, description, options, store)

    @property
    def minimum(self) -> Optional[int]:
        return self._minimum

    @property
    def maximum(self) -> Optional[int]:
        return self._maximum

    def settings_type(self) -> SettingsType:
        return SettingsType.INTEGER

    def convert_from_variant(self, value: Any) -> int:
        if value is None:
            return 0
        try:
            return int(cast(Union[str, int], value))
        except (ValueError, TypeError):
            logger.debug(f"Invalid integer {value!r} for setting '{self.definition_key()}'")
            default = self.default_value_as_variant()
            return int(default) if default is not None else 0

    def check_value(self, value: int) -> bool:
        if not isinstance(value, int) or isinstance(value, bool):
            return False
        if not INT64_MIN <= value <= INT64_MAX:
            logger.debug(
                f"Value {value} does not fit in 64 bits for setting '{self.definition_key()}'"
            )
            return False
        if self._minimum is not None and value < self._minimum:
            logger.debug(
                f"Value {value} is less than minimum {self._minimum} "
                f"for setting '{self.definition_key()}'"
            )
            return False
        if self._maximum is not None and value > self._maximum:
            logger.debug(
                f"Value {value} is greater than maximum {self._maximum} "
                f"for setting '{self.definition_key()}'"
            )
            return False
        return True


class SettingsEntryDouble(SettingsEntryByValue[float]):
    """Floating-point entry with optional bounds."""

    def __init__(
        self,
        key: str,
        parent: ParentType,
        default_value: float = 0.0,
        description: str = "",
        options: SettingsOption = SettingsOption.NONE,
        minimum: Optional[float] = None,
        maximum: Optional[float] = None,
        display_hint_decimals: int = 1,
        store: Optional[SettingsStore] = None,
    ):
        """Initialize the entry.

        Args:
            minimum: Minimum accepted value
            maximum: Maximum accepted value
            display_hint_decimals: Number of decimals a UI should show
        """
        self._minimum = minimum
        self._maximum = maximum
        self._display_hint_decimals = display_hint_decimals
        super().__init__(key, parent, default_value, description, options, store)

    @property
    def minimum(self) -> Optional[float]:
        return self._minimum

    @property
    def maximum(self) -> Optional[float]:
        return self._maximum

    @property
    def display_hint_decimals(self) -> int:
        return self._display_hint_decimals

    def settings_type(self) -> SettingsType:
        return SettingsType.DOUBLE

    def convert_from_variant(self, value: Any) -> float:
        if value is None:
            return 0.0
        try:
            return float(cast(Union[str, float], value))
        except (ValueError, TypeError):
            logger.debug(f"Invalid number {value!r} for setting '{self.definition_key()}'")
            default = self.default_value_as_variant()
            return float(default) if default is not None else 0.0

    def check_value(self, value: float) -> bool:
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            return False
        if math.isnan(value):
            return False
        if self._minimum is not None and value < self._minimum:
            logger.debug(
                f"Value {value} is less than minimum {self._minimum} "
                f"for setting '{self.definition_key()}'"
            )
            return False
        if self._maximum is not None and value > self._maximum:
            logger.debug(
                f"Value {value} is greater than maximum {self._maximum} "
                f"for setting '{self.definition_key()}'"
            )
            return False
        return True


class SettingsEntryColor(SettingsEntryByReference[QColor]):
    """Color entry, stored as #AARRGGBB text."""

    def __init__(
        self,
        key: str,
        parent: ParentType,
        default_value: Optional[QColor] = None,
        description: str = "",
        options: SettingsOption = SettingsOption.NONE,
        allow_alpha: bool = True,
        store: Optional[SettingsStore] = None,
    ):
        self._allow_alpha = allow_alpha
        super().__init__(key, parent, default_value, description, options, store)

    @property
    def allow_alpha(self) -> bool:
        return self._allow_alpha

    def settings_type(self) -> SettingsType:
        return SettingsType.COLOR

    def convert_to_variant(self, value: QColor) -> Any:
        return value.name(QColor.NameFormat.HexArgb)

    def convert_from_variant(self, value: Any) -> QColor:
        if value is None:
            return QColor()
        if isinstance(value, QColor):
            return QColor(value)
        color = QColor(str(value))
        if not color.isValid():
            logger.debug(f"Invalid color {value!r} for setting '{self.definition_key()}'")
            default = self.default_value_as_variant()
            return QColor(default) if default is not None else QColor()
        return color

    def check_value(self, value: QColor) -> bool:
        if not isinstance(value, QColor) or not value.isValid():
            return False
        if not self._allow_alpha and value.alpha() != 255:
            logger.debug(
                f"Color with transparency is not allowed for setting '{self.definition_key()}'"
            )
            return False
        return True

    def default_value(self) -> QColor:
        # convert_from_variant already builds a new QColor
        return self.convert_from_variant(self.default_value_as_variant())


class SettingsEntryEnum(SettingsEntryByValue[E]):
    """
    Enum entry, stored by member name.

    The enum class is taken from the default value. Unknown names read from
    the store fall back to the default.
    """

    def __init__(
        self,
        key: str,
        parent: ParentType,
        default_value: E,
        description: str = "",
        options: SettingsOption = SettingsOption.NONE,
        store: Optional[SettingsStore] = None,
    ):
        self._enum_class: Type[E] = type(default_value)
        super().__init__(key, parent, default_value, description, options, store)

    @property
    def enum_class(self) -> Type[E]:
        return self._enum_class

    def settings_type(self) -> SettingsType:
        return SettingsType.ENUM_FLAG

    def convert_to_variant(self, value: E) -> Any:
        return value.name

    def convert_from_variant(self, value: Any) -> E:
        if isinstance(value, self._enum_class):
            return value
        if value is not None:
            try:
                return self._enum_class[str(value)]
            except KeyError:
                pass
            try:
                return self._enum_class(value)
            except ValueError:
                pass
        logger.debug(
            f"Invalid {self._enum_class.__name__} value {value!r} "
            f"for setting '{self.definition_key()}', using default"
        )
        return self._enum_class[self.default_value_as_variant()]

    def check_value(self, value: E) -> bool:
        return isinstance(value, self._enum_class)


class SettingsEntryFlag(SettingsEntryByValue[F]):
    """Flag entry, stored as member names joined with '|'."""

    def __init__(
        self,
        key: str,
        parent: ParentType,
        default_value: F,
        description: str = "",
        options: SettingsOption = SettingsOption.NONE,
        store: Optional[SettingsStore] = None,
    ):
        self._flag_class: Type[F] = type(default_value)
        super().__init__(key, parent, default_value, description, options, store)

    @property
    def flag_class(self) -> Type[F]:
        return self._flag_class

    def settings_type(self) -> SettingsType:
        return SettingsType.ENUM_FLAG

    def _single_members(self) -> List[F]:
        return [
            member
            for member in self._flag_class.__members__.values()
            if member.value and member.value & (member.value - 1) == 0
        ]

    def convert_to_variant(self, value: F) -> Any:
        return "|".join(
            cast(str, member.name) for member in self._single_members() if member in value
        )

    def convert_from_variant(self, value: Any) -> F:
        if isinstance(value, self._flag_class):
            return value
        if value is None:
            return self._flag_class(0)
        if isinstance(value, (list, tuple)):
            names = [str(item) for item in cast(List[object], value)]
        else:
            names = [name for name in str(value).split("|") if name]
        result = self._flag_class(0)
        for name in names:
            member = self._flag_class.__members__.get(name.strip())
            if member is None:
                logger.debug(
                    f"Unknown {self._flag_class.__name__} flag '{name}' "
                    f"for setting '{self.definition_key()}', using default"
                )
                return self._parse_default()
            result |= member
        return result

    def check_value(self, value: F) -> bool:
        return isinstance(value, self._flag_class)

    def _parse_default(self) -> F:
        result = self._flag_class(0)
        for name in str(self.default_value_as_variant() or "").split("|"):
            if name:
                result |= self._flag_class[name]
        return result
